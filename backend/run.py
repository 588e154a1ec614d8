import os

from storefront import create_app

app = create_app()


if __name__ == '__main__':
    app.run(debug=app.config.get('DEV_MODE', False), host='0.0.0.0', port=int(os.getenv("PORT", "5000")))
