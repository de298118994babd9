# cardinal

Building blocks for running an attack-with-defence (AWD) competition.

## Modules

- **`cardinal.conf`**: reads and writes the TOML configuration file with its
  `[App]`, `[Database]` and `[Game]` sections. `load(path)` reads a file
  (`./conf/Cardinal.toml` when no path is given), `parse(data)` maps already
  parsed tables, and `save(config, path)` writes one back. The result is a
  `Config` holding an `AppConfig`, a `DatabaseConfig` and a `GameConfig`;
  pause periods are `Period` objects. Keys are matched case-insensitively.
  A missing section, a value of the wrong type or an unreadable file raises
  `ConfigError`. `AppConfig.version` is neither read nor written.
- **`cardinal.clock`**: the game clock. `Clock.from_game(game)` builds the start
  and end times, the pause periods, the run periods between them and the total
  round count (run time divided by the round duration, rounded up).
  `Clock.check_config()` checks the timing. Problems raise a `ClockError`
  subclass: `ZeroRoundDurationError`, `StartTimeOrderError`,
  `RestTimeFormatError`, `RestTimeOrderError`, `RestTimeOverflowError` or
  `RestTimeListOrderError`. `combine_duration(durations)` merges neighbouring
  periods that overlap. `Status` is one of `WAIT`, `RUNNING`, `PAUSE`, `END`.
- **`cardinal.runner`**: `ClockRunner(clock, hooks)` moves the clock along.
  `tick(now)` sets the status, the current round and the time left in the
  round, and returns the status. It also calls the `ClockHooks` callbacks:
  `set_rank_title`, `set_rank_list`, `clean_game_box_status`,
  `calculate_scores`, `on_begin`, `on_pause` and `on_end`. A hook left as
  `None` is skipped, and an exception raised by a hook is logged and does
  not stop the runner. `run(interval)` ticks until stopped. `start()` and
  `stop()` run it in a background thread, and both raise `RuntimeError` when
  misused.
- **`cardinal.database`**: `Database.connect(path)` opens an SQLite database
  (in memory by default) and creates the tables. `Database.transaction()` is a
  context manager that commits, or rolls back if an exception escapes, and it
  can be nested.
- **`cardinal.bulletins`**: `BulletinsStore` has `create`, `get`, `get_by_id`,
  `update`, `delete_by_id` and `delete_all`. A missing bulletin raises
  `BulletinNotExistsError`.
- **`cardinal.challenges`**: `ChallengesStore` has `create`, `batch_create`
  (all or nothing), `get`, `get_by_id`, `get_by_ids`, `update`, `delete_by_id`
  and `delete_all`, and takes `ChallengeOptions`. A duplicate title raises
  `ChallengeAlreadyExistsError`; a missing challenge raises
  `ChallengeNotExistsError`.
- **`cardinal.responses`**: builds `(status, body)` pairs with
  `success(value)`, `error(error_code, message)` and `server_error()`. The
  HTTP status is the error code divided by 100. `ApiError` carries an error
  code and a message. `query_int` and `query_float` read a query parameter
  and return 0 when it is missing or invalid.
- **`cardinal.asteroid`**: a broadcast hub for the live visualisation screen.
  `Asteroid(refresh)` takes a callable that returns a `Greet`.
  `connect()` registers a `Client` and queues the greeting for it.
  The `send_*` methods and `new_round_action()` broadcast messages encoded by
  `encode_message`, and `Client.pending()` takes the queued messages.
  `handle(action, payload)` checks a manager request and returns a response
  pair. A bad payload gives error 40038; a status other than `down` or
  `attacked` gives 40039. When a client's queue is full, the hub drops that
  client.
- **`cardinal.dockerhub`**: `fetch_image_data(user, image, tag)` asks Docker
  Hub for an image tag and returns its reference, name and exposed ports.
  `parse_exposed_ports` reads the ports from `EXPOSE` layers.
  `validate_deploy(form, challenge_exists)` checks a `DeployForm` with its
  `PortMapping`s. Failures raise `DockerHubError` or `DeployError`.

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Examples

```python
from cardinal.conf import load, save

config = load("conf/Cardinal.toml")
print(config.game.round_duration, config.game.flag_prefix)
save(config, "conf/Cardinal.toml")
```

```python
from cardinal.clock import Clock
from cardinal.runner import ClockHooks, ClockRunner

clock = Clock.from_game(config.game)
print(clock.total_round)

runner = ClockRunner(clock, ClockHooks(on_end=lambda: print("game over")))
runner.start()
# ...
runner.stop()
```

```python
from cardinal.database import Database
from cardinal.bulletins import BulletinsStore
from cardinal.challenges import ChallengeOptions, ChallengesStore

db = Database.connect(":memory:")

bulletins = BulletinsStore(db)
bulletin_id = bulletins.create("Welcome", "Good luck, have fun!")

challenges = ChallengesStore(db)
challenges.create(ChallengeOptions(title="Web1", base_score=1000))
```

## What this package does not do

- It has no command and does not start a web server. The response helpers and
  `Asteroid.handle` give back status and body pairs for an HTTP layer to send,
  and the hub queues messages for a WebSocket layer to deliver. Neither layer
  is included.
- It stores only bulletins and challenges, and only in SQLite. The database
  settings in `DatabaseConfig` are read and written, but nothing connects to
  MySQL or PostgreSQL. There are no stores for teams, game boxes, flags,
  actions, scores, logs or managers.
- Rank lists, score calculation and status clean-up are hooks supplied by the
  caller; the runner only decides when to call them.
- Deployment stops at validation: `validate_deploy` checks the form but
  nothing pulls images or starts containers.