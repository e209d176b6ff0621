# backend/wsgi.py
from stockbook import create_app

app = create_app()

if __name__ == "__main__":
    # Loopback only: the API has no per-request authentication token.
    app.run(host="127.0.0.1", port=5000)
