from console_server.cli import app

if __name__ == "__main__":
    app()
