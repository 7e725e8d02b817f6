#!/usr/bin/env python3
"""
Hypernym MCP Server

Exposes the Hypernym compression API as two tools, analyze_text and
semantic_compression, to AI assistants over MCP (stdio), and as a small
REST API over HTTP(S) with a JSON-RPC endpoint that speaks the same tool
protocol.

Usage:
    python hypernym_server.py                       # HTTP on $PORT (default 3022)
    python hypernym_server.py --stdio               # MCP over stdin/stdout
    python hypernym_server.py --port 8443           # HTTPS if SSL_KEY_PATH/SSL_CERT_PATH are set
    python hypernym_server.py --raw-response        # semantic_compression returns full JSON
"""

import argparse
import asyncio
import logging
import ssl
import sys
from typing import List, Optional

import uvicorn
from dotenv import load_dotenv

from hypernym_mcp.config import Settings
from hypernym_mcp.log import configure_logging
from hypernym_mcp.models import SERVER_NAME
from hypernym_mcp.server import build_adapter
from hypernym_mcp.server.rest import create_app
from hypernym_mcp.server.stdio import serve_stdio

# Load environment variables from .env file
load_dotenv()

logger = logging.getLogger(SERVER_NAME)


def tls_files_usable(settings: Settings) -> bool:
    """
    Check the TLS key/certificate pair before handing it to uvicorn.

    A missing or broken pair is logged and we fall back to plain HTTP
    rather than refusing to start.
    """
    if not settings.tls_enabled:
        return False
    try:
        context = ssl.create_default_context(ssl.Purpose.CLIENT_AUTH)
        context.load_cert_chain(certfile=settings.ssl_cert_path, keyfile=settings.ssl_key_path)
    except (OSError, ssl.SSLError) as e:
        logger.error("Failed to load TLS certificate/key: %s", e)
        logger.warning("Falling back to HTTP server...")
        return False
    return True


def run_http(settings: Settings) -> None:
    app = create_app(settings)
    tls_options = {}
    scheme = "http"
    if tls_files_usable(settings):
        tls_options = {'ssl_keyfile': settings.ssl_key_path, 'ssl_certfile': settings.ssl_cert_path}
        scheme = "https"

    logger.info("Hypernym MCP server running on %s://%s:%d", scheme, settings.host, settings.port)
    uvicorn.run(
        app,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
        **tls_options
    )


def main(argv: Optional[List[str]] = None) -> int:
    """
    Command-line interface for the Hypernym MCP server.

    Exit codes:
        0 - Server stopped normally
        1 - Configuration error (e.g. no API key)

    Environment variables used:
        HYPERNYM_API_KEY - Your API key (required)
        HYPERNYM_API_URL - API base URL (optional)
        PORT, HOST, SSL_KEY_PATH, SSL_CERT_PATH, LOG_LEVEL - see hypernym_mcp.config
    """
    parser = argparse.ArgumentParser(
        description="Hypernym API as MCP tools and a REST/JSON-RPC server",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Serve HTTP on the default port
  %(prog)s

  # Run as an MCP server for an assistant (stdio transport)
  %(prog)s --stdio

  # Serve on another port with a longer upstream timeout
  %(prog)s --port 8080 --timeout 120
        """
    )
    parser.add_argument('--stdio', action='store_true', help='Serve MCP over stdin/stdout instead of HTTP')
    parser.add_argument('--host', help='Interface to bind (default: $HOST or 0.0.0.0)')
    parser.add_argument('--port', type=int, help='Port to listen on (default: $PORT or 3022)')
    parser.add_argument('--api-key', help='Hypernym API key (overrides env var)')
    parser.add_argument('--api-url', help='Hypernym API URL (overrides env var)')
    parser.add_argument('--timeout', type=float, help='Seconds per upstream attempt (default: 60, max: 120)')
    parser.add_argument('--raw-response', action='store_true',
                        help='Make semantic_compression return the full JSON response')
    parser.add_argument('--log-level', help='Logging level (default: $LOG_LEVEL or INFO)')

    args = parser.parse_args(argv)

    try:
        settings = Settings.from_env(
            api_key=args.api_key,
            api_url=args.api_url,
            host=args.host,
            port=args.port,
            timeout=args.timeout,
            raw_response=True if args.raw_response else None,
            log_level=args.log_level,
        )
    except ValueError as e:
        configure_logging(args.log_level or "INFO")
        logger.error("Configuration error: %s", e)
        return 1

    configure_logging(settings.log_level)

    try:
        if args.stdio:
            asyncio.run(serve_stdio(build_adapter(settings)))
        else:
            run_http(settings)
    except KeyboardInterrupt:
        logger.info("Server stopped")
    return 0


if __name__ == '__main__':
    sys.exit(main())
