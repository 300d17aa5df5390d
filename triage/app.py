import logging
import os

from flask import Flask, request, jsonify

from triage.config import Config
from triage.errors import MalformedInput, NoValidEntries, RemoteStoreFailure
from triage.notifications import LoggingNotificationHandler, Notifier
from triage.store import StateRepository, create_store
from triage.validator import LOG_STATE_UPDATE_SCHEMA, VIEW_SETTINGS_SCHEMA, RequestValidator
from triage.workspace import Workspace

logger = logging.getLogger(__name__)


def create_app(config=None, store=None):
    """Flask application factory."""
    app = Flask(__name__)

    if config is None:
        config = Config(os.environ.get("CONFIG_PATH", "config.yaml"))
    if store is None:
        store = create_store(config)

    store_cfg = config["store"]
    repository = StateRepository(
        store,
        log_states_table=store_cfg["log_states_table"],
        sessions_table=store_cfg["sessions_table"],
    )
    notifier = Notifier(max_recent=config["notifications"]["max_recent"])
    notifier.add_handler(LoggingNotificationHandler())
    workspace = Workspace(repository, notifier, identity_strategy=config["identity"]["strategy"])
    loaded = workspace.refresh()
    if not all(loaded.values()):
        logger.warning("Started with incomplete state from the store: %s", loaded)

    state_validator = RequestValidator(LOG_STATE_UPDATE_SCHEMA)
    view_validator = RequestValidator(VIEW_SETTINGS_SCHEMA)

    # Store components on app for access in tests
    app.config["components"] = {
        "config": config,
        "store": store,
        "repository": repository,
        "notifier": notifier,
        "workspace": workspace,
        "state_validator": state_validator,
        "view_validator": view_validator,
    }

    # --- Error mapping ---

    @app.errorhandler(MalformedInput)
    @app.errorhandler(NoValidEntries)
    def rejected_upload(error):
        return jsonify({"status": "invalid", "error": str(error)}), 400

    @app.errorhandler(RemoteStoreFailure)
    def store_failure(error):
        return jsonify({"status": "store_error", "error": str(error)}), 502

    # --- Routes ---

    @app.route("/health")
    def health():
        return jsonify({
            "status": "healthy",
            "store_backend": store_cfg["backend"],
            "total_logs": len(workspace.logs),
            "log_states": len(workspace.log_states),
            "validation_stats": {
                "log_state_updates": state_validator.get_stats(),
                "view_settings": view_validator.get_stats(),
            },
        })

    @app.route("/api/logs/upload", methods=["POST"])
    def upload_logs():
        uploaded = request.files.get("file")
        raw = uploaded.read() if uploaded is not None else request.get_data()

        logs = workspace.upload(raw)
        return jsonify({"status": "loaded", "loaded": len(logs), **workspace.snapshot()}), 201

    @app.route("/api/logs", methods=["GET"])
    def list_logs():
        return jsonify(workspace.snapshot())

    @app.route("/api/logs", methods=["DELETE"])
    def clear_logs():
        workspace.clear()
        return jsonify({"status": "cleared"})

    @app.route("/api/logs/<path:log_id>/state", methods=["PATCH"])
    def update_log_state(log_id):
        payload = request.get_json(silent=True)
        is_valid, errors = state_validator.validate(payload)
        if not is_valid:
            return jsonify({"status": "invalid", "errors": errors}), 400

        state = workspace.update_log_state(
            log_id,
            payload["cabinet_name"],
            processed=payload.get("processed"),
            comment=payload.get("comment"),
        )
        return jsonify({
            "status": "updated",
            "state": state.to_dict(),
            "logs": [log.to_dict() for log in workspace.find_logs(log_id, payload["cabinet_name"])],
        })

    @app.route("/api/cabinets")
    def cabinets():
        return jsonify({
            "active_cabinet": workspace.active_cabinet,
            "cabinets": workspace.overview(),
            "sessions": [session.to_dict() for session in workspace.sessions.sessions],
        })

    @app.route("/api/cabinets/<path:cabinet_name>/work", methods=["POST"])
    def start_work(cabinet_name):
        session = workspace.start_work(cabinet_name)
        return jsonify({
            "status": "started",
            "active_cabinet": workspace.active_cabinet,
            "session": session.to_dict(),
        }), 201

    @app.route("/api/cabinets/<path:cabinet_name>/work", methods=["DELETE"])
    def end_work(cabinet_name):
        removed = workspace.end_work(cabinet_name)
        return jsonify({
            "status": "ended",
            "active_cabinet": workspace.active_cabinet,
            "removed": removed,
        })

    @app.route("/api/view", methods=["PUT"])
    def view_settings():
        payload = request.get_json(silent=True)
        is_valid, errors = view_validator.validate(payload)
        if not is_valid:
            return jsonify({"status": "invalid", "errors": errors}), 400
        workspace.set_show_processed(payload["show_processed"])
        return jsonify(workspace.snapshot())

    @app.route("/api/refresh", methods=["POST"])
    def refresh():
        loaded = workspace.refresh()
        status_code = 200 if all(loaded.values()) else 502
        return jsonify({"status": "refreshed" if status_code == 200 else "partial", "loaded": loaded}), status_code

    @app.route("/api/notifications")
    def notifications():
        count = request.args.get("count", None, type=int)
        return jsonify(notifier.get_recent(count))

    return app
