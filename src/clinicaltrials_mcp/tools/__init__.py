"""MCP tool logic, independent of the transport that registers it."""
