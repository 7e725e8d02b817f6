#!/usr/bin/env python3
"""
Smoke test a running Hypernym MCP server over HTTP.

Usage:
    python examples/smoke_client.py health
    python examples/smoke_client.py analyze_sync
    python examples/smoke_client.py semantic_compression
    python examples/smoke_client.py analyze_text --url https://localhost:3022 --insecure
"""

import argparse
import json
import os
import sys

import requests
from dotenv import load_dotenv
from rich.console import Console
from rich.panel import Panel
from rich.syntax import Syntax

load_dotenv()

console = Console()

# Each sample should be 200+ tokens for Hypernym to compress it meaningfully
SAMPLE_TEXT = """To be, or not to be, that is the question:
Whether 'tis nobler in the mind to suffer
The slings and arrows of outrageous fortune,
Or to take arms against a sea of troubles
And by opposing end them. To die - to sleep,
No more; and by a sleep to say we end
The heart-ache and the thousand natural shocks
That flesh is heir to: 'tis a consummation
Devoutly to be wish'd. To die, to sleep;
To sleep, perchance to dream - ay, there's the rub:
For in that sleep of death what dreams may come,
When we have shuffled off this mortal coil,
Must give us pause - there's the respect
That makes calamity of so long life.
For who would bear the whips and scorns of time,
Th'oppressor's wrong, the proud man's contumely,
The pangs of dispriz'd love, the law's delay,
The insolence of office, and the spurns
That patient merit of th'unworthy takes,
When he himself might his quietus make
With a bare bodkin? Who would fardels bear,
To grunt and sweat under a weary life,
But that the dread of something after death,
The undiscovere'd country, from whose bourn
No traveller returns, puzzles the will,
And makes us rather bear those ills we have
Than fly to others that we know not of?
Thus conscience doth make cowards of us all,
And thus the native hue of resolution
Is sicklied o'er with the pale cast of thought,
And enterprises of great pith and moment
With this regard their currents turn awry
And lose the name of action."""


def default_url() -> str:
    port = os.environ.get("PORT", "3022")
    scheme = "https" if os.environ.get("SSL_KEY_PATH") and os.environ.get("SSL_CERT_PATH") else "http"
    return f"{scheme}://localhost:{port}"


def show_json(title: str, data) -> None:
    console.print(Panel(Syntax(json.dumps(data, indent=2), "json", word_wrap=True), title=title))


def check_health(session: requests.Session, url: str, verify: bool) -> bool:
    response = session.get(f"{url}/health", verify=verify, timeout=10)
    console.print(f"Status: {response.status_code}")
    show_json("Health", response.json())
    return response.ok


def call_analyze_sync(session: requests.Session, url: str, verify: bool, api_key: str = None) -> bool:
    headers = {'X-API-Key': api_key} if api_key else {}
    payload = {
        'essay_text': SAMPLE_TEXT,
        'params': {'min_compression_ratio': 0.5, 'min_semantic_similarity': 0.8}
    }
    response = session.post(f"{url}/analyze_sync", json=payload, headers=headers, verify=verify, timeout=150)
    console.print(f"Status: {response.status_code}")
    show_json("analyze_sync response", response.json())
    return response.ok


def call_tool(session: requests.Session, url: str, verify: bool, tool_name: str) -> bool:
    """Call a tool through the JSON-RPC endpoint, the way an MCP client would over HTTP"""
    request = {
        'jsonrpc': '2.0',
        'id': '1',
        'method': 'tools/call',
        'params': {
            'name': tool_name,
            'arguments': {
                'text': SAMPLE_TEXT,
                'min_compression_ratio': 0.5,
                'min_semantic_similarity': 0.8
            }
        }
    }
    console.print(f"Testing MCP tool '{tool_name}' at {url}...")
    response = session.post(url, json=request, verify=verify, timeout=150)
    console.print(f"Status: {response.status_code}")
    data = response.json()

    if 'error' in data:
        console.print(f"[red]MCP Error: {data['error']}[/red]")
        return False

    result = data.get('result', {})
    for i, item in enumerate(result.get('content', []), start=1):
        style = "red" if result.get('isError') else "green"
        console.print(Panel(item.get('text', ''), title=f"Content {i} ({item.get('type')})", border_style=style))
    return not result.get('isError', False)


def main() -> int:
    parser = argparse.ArgumentParser(description="Smoke test a running Hypernym MCP server")
    parser.add_argument('target', nargs='?', default='semantic_compression',
                        choices=['health', 'analyze_sync', 'analyze_text', 'semantic_compression'])
    parser.add_argument('--url', default=default_url(), help='Server URL (default: from PORT/SSL_* env vars)')
    parser.add_argument('--api-key', help='Send this key in X-API-Key (analyze_sync only)')
    parser.add_argument('--insecure', action='store_true', help='Skip TLS verification (self-signed certs)')
    args = parser.parse_args()

    verify = not args.insecure
    url = args.url.rstrip('/')

    with requests.Session() as session:
        try:
            if args.target == 'health':
                ok = check_health(session, url, verify)
            elif args.target == 'analyze_sync':
                ok = call_analyze_sync(session, url, verify, args.api_key)
            else:
                ok = call_tool(session, url, verify, args.target)
        except requests.RequestException as e:
            console.print(f"[red]Request Error: {e}[/red]")
            return 1

    return 0 if ok else 1


if __name__ == '__main__':
    sys.exit(main())
