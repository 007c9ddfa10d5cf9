"""
Chess rules package: the authority on move legality for the browser board.

Modules:
    constants  - Board geometry, starting set-up, castling layout, undo quotas
    state      - Board State, pieces and move records
    geometry   - Path and occupancy validation helpers
    movement   - Per-piece movement predicates and move enumeration
    check      - King safety, move simulation, checkmate and stalemate
    special    - Castling, en passant and promotion
    execution  - Ordinary move execution with capture bookkeeping
    history    - Move history, notation and exact undo
    legal      - Fully legal move queries for highlighting and fallbacks
    fen        - FEN for the engine request, move-token parsing for its reply
    game       - GameController: turn sequencing, engine turns, undo policy
"""
