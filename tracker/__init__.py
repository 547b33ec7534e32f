# Project tracker: Kanban-style project boards with local persistence
#
# Components:
#   schema.py   - Data model (Project, Lane, ProjectStatus) and due-date summary
#   naming.py   - Collision-free display names ("Trip", "Trip (1)", ...)
#   gateway.py  - SQLite key/value persistence layer
#   board.py    - TaskBoard: lanes of one project, add/remove/move, status
#   store.py    - ProjectStore: project collection, create/delete/load/save
#   config.py   - YAML configuration
#   cli.py      - Command-line front end
