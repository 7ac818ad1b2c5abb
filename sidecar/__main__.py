import os

from dotenv import load_dotenv

from sidecar.cli.commands import app

# Load .env file from ~/.sidecar/ if it exists
# Precedence: existing env vars > .env file (override=False)
load_dotenv(os.path.expanduser("~/.sidecar/.env"), override=False)

if __name__ == "__main__":
    app()
