import logging
import uuid as uuid_lib
from typing import Callable

from flask import Flask, render_template
from jinja2 import TemplateError
from prometheus_client import CollectorRegistry
from prometheus_flask_exporter import NO_PREFIX, PrometheusMetrics

from meshcli import __version__
from meshcli.api_client import ApiClientInterface
from meshcli.exceptions import BaseMeshException


def create_app(
    api_client_factory: Callable[[], ApiClientInterface], uuid: str = None
) -> Flask:
    """
    Create the dashboard's Flask application. Every request to the index page
    asks the control plane for its version and renders it.
    """
    app = Flask(__name__)
    app.config["UUID"] = uuid or str(uuid_lib.uuid4())

    # one registry per app, the default one only takes a single app
    metrics = PrometheusMetrics(
        app, defaults_prefix=NO_PREFIX, registry=CollectorRegistry()
    )

    @app.route("/", methods=["GET"])
    def index():
        params = {
            "uuid": app.config["UUID"],
            "client_version": __version__,
            "data": None,
            "error": False,
            "error_message": "",
        }

        try:
            params["data"] = api_client_factory().version()
        except BaseMeshException as err:
            params["error"] = True
            params["error_message"] = err.user_msg
            logging.error(str(err))

        try:
            return render_template("app.tmpl.html", **params)
        except TemplateError as err:
            logging.error("unable to render index page: %s", err)
            return "", 500

    # health probe
    @app.route("/health", methods=["GET", "POST"])
    @metrics.do_not_track()
    def healthz():
        return "", 200

    # readiness probe
    @app.route("/ready", methods=["GET", "POST"])
    @metrics.do_not_track()
    def readyz():
        return "", 200

    return app
