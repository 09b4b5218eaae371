# Task board engine: lanes, WIP limits, transitions, drag-and-drop moves
#
# Components:
#   schema.py       - Data model (TaskItem, Column, MoveIntent, MoveOutcome)
#   errors.py       - Error taxonomy (InvalidTransition, WipLimitExceeded, MoveFailed)
#   transitions.py  - Configurable status transition table
#   wip.py          - WIP limit admission check
#   store.py        - In-memory task store (single source of truth)
#   projector.py    - Flat task list -> ordered lanes
#   dragdrop.py     - Drag session state machine and pointer sensor
#   orchestrator.py - Validate, persist, commit a move
#   gateway.py      - Persistence gateway contract and HTTP client
#   board.py        - TaskBoard facade wiring it all together
#   config.py       - YAML configuration
#   repository.py   - SQLite persistence backend
#   server.py       - Flask JSON API over the repository
