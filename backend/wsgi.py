from webster import create_app

app = create_app()
