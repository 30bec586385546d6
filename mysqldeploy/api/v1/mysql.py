"""
Flask Blueprint for MySQL server deployment endpoints.

Provides:
- Compose: validate a server configuration and return the composed
  requests, submission plan and outputs without touching Azure
- Deploy: validate, compose and submit the plan
"""

import asyncio
import logging
from typing import Any, Dict, Tuple

from flask import Blueprint, current_app, request

from mysqldeploy.config import provisioner_settings
from mysqldeploy.services.provisioning import (
    BaseProvisioner,
    get_provisioner,
    parse_server_spec,
)
from mysqldeploy.utils.api_responses import created_response, error_response, success_response

logger = logging.getLogger(__name__)

mysql_bp = Blueprint("mysql", __name__, url_prefix="/mysql")


def _build_provisioner(dry_run: bool = False) -> BaseProvisioner:
    """
    Build a provisioner from app settings.

    Tests and embedders may register an alternative factory under
    app.extensions["provisioner_factory"].
    """
    settings = provisioner_settings(current_app.config)
    if dry_run:
        settings["dry_run"] = True
    factory = current_app.extensions.get("provisioner_factory", get_provisioner)
    return factory("azure", settings)


def _run_async(coro):
    loop = asyncio.new_event_loop()
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


@mysql_bp.route("/compose", methods=["POST"])
def compose_server() -> Tuple[Dict[str, Any], int]:
    """
    Validate a server configuration and compose its requests.

    Request Body:
        Server configuration (camelCase or snake_case keys)

    Returns:
        JSON response with outputs, composed requests (secrets redacted)
        and the submission plan
    """
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        return error_response(error="Request body must be a JSON object", status_code=400)

    spec = parse_server_spec(payload)
    provisioner = _build_provisioner(dry_run=True)
    deployment, plan = provisioner.plan(spec)

    data = deployment.to_dict()
    data["plan"] = plan.to_dict()
    return success_response(data=data, message=f"Composed deployment for {spec.name}")


@mysql_bp.route("/servers", methods=["POST"])
def create_server() -> Tuple[Dict[str, Any], int]:
    """
    Deploy a MySQL server with all of its child resources.

    Request Body:
        Server configuration (camelCase or snake_case keys)

    Returns:
        201 with provider_resource_id, endpoint and submission report,
        or 200 with the plan when the provisioner runs in dry-run mode
    """
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        return error_response(error="Request body must be a JSON object", status_code=400)

    spec = parse_server_spec(payload)
    provisioner = _build_provisioner()

    logger.info(f"Deploying MySQL server {spec.name}")
    result = _run_async(provisioner.create_server(spec))

    if result["status"] == "planned":
        return success_response(data=result, message="Deployment planned (dry run)")
    return created_response(data=result, message=f"MySQL server {spec.name} deployed")
