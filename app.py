import os

from dotenv import load_dotenv

# Load .env file before the config classes read the environment
load_dotenv()

from gymhub import create_app  # noqa: E402

app = create_app(os.getenv("GYMHUB_CONFIG", "gymhub.config.Config"))

if __name__ == "__main__":
    app.run(host="0.0.0.0", port=int(os.getenv("PORT", 5000)), debug=app.debug)
