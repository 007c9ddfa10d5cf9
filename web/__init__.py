"""
Web application package: a FastAPI JSON API that lets a browser board play
a game held by the server-side GameController.
"""
