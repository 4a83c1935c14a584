import logging

from flask import Flask, jsonify, render_template
from dotenv import load_dotenv

from config_loader import load_config, get_daily_limit, get_hashtag
from episode_api import episode_bp
from llm_provider import initialize_llm
from quota import STORAGE_KEY

load_dotenv()
logging.basicConfig(level=logging.INFO)


def create_app(cfg=None, llm_factory=None):
    """
    Build the Flask app around an explicit config dict and provider factory.
    Tests pass a stub factory; production uses initialize_llm.
    """
    app = Flask(__name__)
    app.config["EPISODE_CONFIG"] = cfg if cfg is not None else load_config()
    app.config["LLM_FACTORY"] = llm_factory or initialize_llm
    app.register_blueprint(episode_bp)

    @app.errorhandler(405)
    def method_not_allowed(_e):
        return jsonify({"error": "Method not allowed"}), 405

    @app.route("/")
    def index():
        c = app.config["EPISODE_CONFIG"]
        return render_template(
            "index.html",
            daily_limit=get_daily_limit(c),
            storage_key=STORAGE_KEY,
            hashtag=get_hashtag(c),
            donation_url=c.get("share", {}).get("donation_url"),
        )

    return app


if __name__ == "__main__":
    app = create_app()
    port = int(app.config["EPISODE_CONFIG"].get("server", {}).get("port", 5001))
    app.run(port=port, debug=True)
