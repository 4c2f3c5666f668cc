import argparse
import os
import sys
import json
from typing import Optional

from .api_client import SMSAPIClient
from .config import SMSAPIConfig, DEFAULT_BASE_URL, get_default_config_dir
from .errors import SMSSDKError, WebhookSecretError
from .logging_config import setup_logging
from .webhooks import verify_webhook


def write_file(path: str, data: bytes, mode: int = 0o600) -> None:
    with open(path, 'wb') as f:
        f.write(data)
    try:
        os.chmod(path, mode)
    except OSError:
        # chmod is a no-op on non-POSIX filesystems
        pass


def _print_result(result, verbose: bool) -> None:
    if verbose:
        print(json.dumps(result.raw, indent=2))


def cmd_init(args: argparse.Namespace) -> int:
    """Create the config directory and write config.json"""
    config_dir = args.config_dir or get_default_config_dir()
    config_path = os.path.join(config_dir, "config.json")

    print(f"Initializing SMS SDK config in: {config_dir}")

    try:
        os.makedirs(config_dir, exist_ok=True)
    except OSError as e:
        print(f"Failed to create config directory: {e}", file=sys.stderr)
        return 1

    if os.path.exists(config_path) and not args.force:
        print(f"Config file already exists: {config_path}")
        print("Use --force to overwrite existing files")
        return 1

    config_data = {
        "api_key": args.api_key,
        "base_url": args.base_url or DEFAULT_BASE_URL,
        "webhook_secret": args.webhook_secret,
        "default_sender": args.default_sender,
    }
    # Remove None values
    config_data = {k: v for k, v in config_data.items() if v is not None}

    try:
        # 0600: the file holds the API key
        write_file(config_path, (json.dumps(config_data, indent=2) + "\n").encode("utf-8"), 0o600)
    except OSError as e:
        print(f"Failed to create config file: {e}", file=sys.stderr)
        return 1

    print(f"Created config file: {config_path}")
    if not args.api_key:
        print("No API key given: set SMS_API_KEY or add \"api_key\" to the config file")
    return 0


def cmd_send_sms(args: argparse.Namespace) -> int:
    """Send an SMS message"""
    try:
        config = SMSAPIConfig(args.config)
        with SMSAPIClient(config) as client:
            message = client.messages.send(args.to, args.message, sender=args.sender,
                                           idempotency_key=args.idempotency_key)
        _print_result(message, args.verbose)
        if not args.verbose:
            print(f"SMS sent successfully! Message ID: {message.id or 'N/A'} ({message.status})")
        return 0
    except (SMSSDKError, ValueError, FileNotFoundError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_verify_send(args: argparse.Namespace) -> int:
    """Send a verification code"""
    try:
        config = SMSAPIConfig(args.config)
        with SMSAPIClient(config) as client:
            verification = client.verifications.send_code(
                args.to, channel=args.channel, locale=args.locale, code_length=args.code_length)
        _print_result(verification, args.verbose)
        if not args.verbose:
            print(f"Verification code sent to {verification.to or args.to} ({verification.status})")
        return 0
    except (SMSSDKError, ValueError, FileNotFoundError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_verify_check(args: argparse.Namespace) -> int:
    """Check a verification code. Exit status 0 only for an approved code"""
    try:
        config = SMSAPIConfig(args.config)
        with SMSAPIClient(config) as client:
            check = client.verifications.check_code(args.to, args.code)
        _print_result(check, args.verbose)
        if not args.verbose:
            print("Code approved" if check.valid else f"Code rejected ({check.status})")
        return 0 if check.valid else 1
    except (SMSSDKError, ValueError, FileNotFoundError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def _resolve_secret(args: argparse.Namespace) -> Optional[str]:
    if args.secret:
        return args.secret
    env_secret = os.environ.get("SMS_WEBHOOK_SECRET")
    if env_secret:
        return env_secret
    # Only the secret is needed here, an API key may not be configured
    config = SMSAPIConfig(args.config, api_key=os.environ.get("SMS_API_KEY") or "unused")
    return config.webhook_secret


def cmd_webhook_verify(args: argparse.Namespace) -> int:
    """Verify a stored webhook body against its signature header.

    Exit status: 0 valid, 1 invalid, 2 unusable secret.
    """
    try:
        secret = _resolve_secret(args)
    except (SMSSDKError, FileNotFoundError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2
    if not secret:
        print("Error: no webhook secret (use --secret, SMS_WEBHOOK_SECRET or the config file)",
              file=sys.stderr)
        return 2

    try:
        with open(args.body_file, 'rb') as f:
            raw_body = f.read()
    except OSError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    try:
        valid = verify_webhook(raw_body, args.signature, secret, tolerance=args.tolerance)
    except WebhookSecretError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    print("Signature valid" if valid else "Signature invalid")
    return 0 if valid else 1


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="sms-sdk", description="SMS API client utilities")
    p.add_argument("--log-level", default=None, type=str.upper,
                   choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
                   help="Logging level (default: LOG_LEVEL or WARNING)")
    sub = p.add_subparsers(dest="cmd", required=True)

    p_init = sub.add_parser("init", help="Create the client config file",
                            description="Create the configuration directory and a config.json with the API settings.")
    p_init.add_argument("--config-dir", help="Config directory (default: XDG_CONFIG_HOME/sms_sdk or ~/.config/sms_sdk)")
    p_init.add_argument("--api-key", help="API key")
    p_init.add_argument("--base-url", help=f"API base URL (default: {DEFAULT_BASE_URL})")
    p_init.add_argument("--default-sender", help="Default sender number or id")
    p_init.add_argument("--webhook-secret", help="Webhook signing secret (whsec_...)")
    p_init.add_argument("--force", action="store_true", help="Overwrite existing files")
    p_init.set_defaults(func=cmd_init)

    p_send = sub.add_parser("send", help="Send an SMS message",
                            description="Send an SMS message to a phone number.")
    p_send.add_argument("to", help="Recipient phone number")
    p_send.add_argument("message", help="Message to send")
    p_send.add_argument("--from", dest="sender", help="Sender number or id (overrides config)")
    p_send.add_argument("--idempotency-key", help="Idempotency key for safe retries")
    p_send.add_argument("--config", default=None, help="Config file path (default: auto-detect from config directory)")
    p_send.add_argument("--verbose", "-v", action="store_true", help="Print the full API response")
    p_send.set_defaults(func=cmd_send_sms)

    p_vsend = sub.add_parser("verify-send", help="Send a verification code",
                             description="Start a phone-number verification by sending a code.")
    p_vsend.add_argument("to", help="Phone number to verify")
    p_vsend.add_argument("--channel", default="sms", help="Delivery channel (default: sms)")
    p_vsend.add_argument("--locale", help="Language of the code message")
    p_vsend.add_argument("--code-length", type=int, help="Number of digits in the code")
    p_vsend.add_argument("--config", default=None, help="Config file path (default: auto-detect from config directory)")
    p_vsend.add_argument("--verbose", "-v", action="store_true", help="Print the full API response")
    p_vsend.set_defaults(func=cmd_verify_send)

    p_vcheck = sub.add_parser("verify-check", help="Check a verification code",
                              description="Check a verification code. Exits 0 when the code is approved.")
    p_vcheck.add_argument("to", help="Phone number being verified")
    p_vcheck.add_argument("code", help="Code entered by the user")
    p_vcheck.add_argument("--config", default=None, help="Config file path (default: auto-detect from config directory)")
    p_vcheck.add_argument("--verbose", "-v", action="store_true", help="Print the full API response")
    p_vcheck.set_defaults(func=cmd_verify_check)

    p_hook = sub.add_parser("webhook-verify", help="Verify a webhook signature",
                            description="Verify a saved webhook body against its X-Webhook-Signature header. "
                                        "Exits 0 if valid, 1 if invalid, 2 if the secret is unusable.")
    p_hook.add_argument("body_file", help="File holding the raw request body")
    p_hook.add_argument("--signature", required=True, help="X-Webhook-Signature header value")
    p_hook.add_argument("--secret", help="Webhook secret (default: SMS_WEBHOOK_SECRET or config file)")
    p_hook.add_argument("--tolerance", type=int, default=300, help="Maximum signature age in seconds (default: 300)")
    p_hook.add_argument("--config", default=None, help="Config file path (default: auto-detect from config directory)")
    p_hook.set_defaults(func=cmd_webhook_verify)

    return p


def main(argv=None) -> int:
    argv = argv if argv is not None else sys.argv[1:]
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(log_level=args.log_level)
    return args.func(args)


if __name__ == "__main__":
    raise SystemExit(main())
