"""
FastAPI routers grouped by domain (auth, transactions, health).

Each file inside this package exposes an APIRouter that is included by
create_app() in app.py. Routers translate HTTP to AuthService calls and
results back to the {ok, ...} envelope; they hold no business rules.
"""
