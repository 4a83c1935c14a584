import logging

from flask import Blueprint, current_app, jsonify

from config_loader import get_daily_limit
from llm_provider import generate_episode_text, generation_settings

episode_bp = Blueprint("episode_bp", __name__)


@episode_bp.route("/api/generate-episode", methods=["POST"], provide_automatic_options=False)
def generate_episode():
    cfg = current_app.config["EPISODE_CONFIG"]
    llm_factory = current_app.config["LLM_FACTORY"]
    verbose = cfg.get("logging", {}).get("verbose", False)
    try:
        # one client per request, built from the app's own config
        llm_local = llm_factory(cfg)
        episode = generate_episode_text(llm_local, generation_settings(cfg)["prompt"], verbose=verbose)
    except Exception as e:
        logging.error("LLM error: %s", e)
        return jsonify({"error": "generation failed"}), 500
    if verbose:
        logging.info("Generated episode: %s", episode)
    return jsonify({"episode": episode})


@episode_bp.get("/api/quota")
def get_quota():
    return jsonify({"limit": get_daily_limit(current_app.config["EPISODE_CONFIG"])})
