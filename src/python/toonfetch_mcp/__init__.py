"""
ToonFetch MCP server

Serves OpenAPI specifications over MCP tools and prompts: endpoint search,
schema lookup, and copy-paste ready TypeScript examples for the toonfetch
client.
"""

__version__ = "0.3.0"
