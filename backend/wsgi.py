from closeout import create_app

app = create_app()
