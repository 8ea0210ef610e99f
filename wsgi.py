from reloadrage import create_app

app = create_app()
