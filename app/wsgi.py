from app.ctms import create_app

app = create_app()
