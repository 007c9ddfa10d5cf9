"""
Move-search package: answers the game's engine requests.

Modules:
    constants - Piece values, difficulty depths, search limits
    evaluate  - Static evaluation (material + centre occupation)
    search    - Negamax with alpha-beta, quiescence, root move scoring
    bridge    - best_move(fen, difficulty) for the bundled search and for
                external UCI engines
"""
