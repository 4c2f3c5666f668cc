"""
Webhook receiver blueprint for Flask applications

To register this blueprint in your Flask app:
    from sms_sdk.webhook_receiver import create_webhook_blueprint

    def on_event(event):
        if event.type == "sms.delivered":
            ...

    app.register_blueprint(create_webhook_blueprint(secret, on_event))

Endpoints:
    POST /webhooks/events - Verify the signature and hand the event to the handler
"""

import logging
from typing import Callable

from flask import Blueprint, jsonify, request

from .errors import WebhookPayloadError, WebhookSecretError
from .logging_config import log_security_event
from .models import WebhookEvent
from .webhooks import (
    DEFAULT_TOLERANCE_SECONDS, SIGNATURE_HEADER, WebhookVerifier, parse_event_body,
)

logger = logging.getLogger(__name__)


def create_webhook_blueprint(secret: str, handler: Callable[[WebhookEvent], None],
                             url_prefix: str = '/webhooks',
                             tolerance: int = DEFAULT_TOLERANCE_SECONDS,
                             name: str = 'sms_webhooks') -> Blueprint:
    """Build a blueprint that accepts signed webhooks and dispatches them to ``handler``"""
    webhook_bp = Blueprint(name, __name__, url_prefix=url_prefix)

    # A bad secret must not stop the app from starting, requests get a 500 instead
    try:
        verifier = WebhookVerifier(secret, tolerance=tolerance)
        secret_error = None
    except WebhookSecretError as e:
        verifier = None
        secret_error = e
        logger.error(f"Webhook secret is misconfigured: {e}")

    @webhook_bp.route('/events', methods=['POST'])
    def receive_event():
        client_ip = request.remote_addr
        if verifier is None:
            logger.error(f"Rejecting webhook from {client_ip}, secret is misconfigured: {secret_error}")
            return jsonify({"error": "Webhook receiver misconfigured"}), 500

        header = request.headers.get(SIGNATURE_HEADER)
        if not header:
            log_security_event('webhook_rejected', f'missing {SIGNATURE_HEADER} header', client_ip)
            return jsonify({"error": f"{SIGNATURE_HEADER} header required"}), 400

        # The signature covers the raw bytes, parse only after verifying
        raw_body = request.get_data(cache=True)

        if not verifier.verify(raw_body, header):
            log_security_event('webhook_rejected', 'invalid or expired signature', client_ip)
            return jsonify({"error": "Invalid signature"}), 401

        try:
            event = parse_event_body(raw_body)
        except WebhookPayloadError as e:
            logger.warning(f"Signed webhook from {client_ip} has unusable body: {e}")
            return jsonify({"error": str(e)}), 400

        logger.info(f"Webhook event {event.type} ({event.id}) accepted from {client_ip}")
        handler(event)
        return jsonify({"status": "ok"})

    return webhook_bp
