"""
MCP Server — Exposes the GreenPrompt analyzer as discoverable tools
for multi-agent systems.

Tools:
- analyze_prompt: Score a prompt for sustainability and quality risk
- get_rules: Return the active rule configuration
"""

import asyncio
import json
import logging

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import TextContent, Tool

from greenprompt import PromptAnalyzer, load_rules
from greenprompt.config import LOG_LEVEL, RULES_PATH

logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(name)s %(levelname)s %(message)s")
logger = logging.getLogger(__name__)

# Create MCP server
server = Server("greenprompt")

# Shared instance
analyzer = PromptAnalyzer(load_rules(RULES_PATH))


@server.list_tools()
async def list_tools() -> list[Tool]:
    """Advertise available tools to MCP clients."""
    return [
        Tool(
            name="analyze_prompt",
            description=(
                "Score a prompt for sustainability: estimated energy, CO2e and "
                "water cost, plus heuristic quality issues (vagueness, forced "
                "verbosity, missing format or output cap). Returns a 0-100 score, "
                "grade, retry risk, issues, tips, autofixes and a suggested rewrite."
            ),
            inputSchema={
                "type": "object",
                "properties": {
                    "prompt": {
                        "type": "string",
                        "description": "The prompt to analyze",
                    },
                    "max_output_tokens": {
                        "type": "integer",
                        "description": "Output token cap the prompt will be sent with",
                    },
                    "temperature": {
                        "type": "number",
                        "description": "Sampling temperature the prompt will be sent with",
                    },
                },
                "required": ["prompt"],
            },
        ),
        Tool(
            name="get_rules",
            description=(
                "Return the thresholds, phrase patterns, task keywords and "
                "impact coefficients the analyzer is running with."
            ),
            inputSchema={"type": "object", "properties": {}},
        ),
    ]


@server.call_tool()
async def call_tool(name: str, arguments: dict) -> list[TextContent]:
    """Handle tool calls from MCP clients."""

    if name == "analyze_prompt":
        prompt = arguments.get("prompt", "")
        if not isinstance(prompt, str) or not prompt.strip():
            return [TextContent(type="text", text="Error: prompt is required")]

        try:
            report = analyzer.analyze(prompt, arguments)
            response = {"prompt": prompt, "report": report.model_dump(mode="json")}
            return [
                TextContent(
                    type="text",
                    text=json.dumps(response, indent=2, ensure_ascii=False),
                )
            ]

        except Exception as e:
            logger.error("analyze_prompt failed: %s", e, exc_info=True)
            return [TextContent(type="text", text=f"Error: {str(e)}")]

    elif name == "get_rules":
        rules = analyzer.rules.model_dump(mode="json", by_alias=True)
        return [TextContent(type="text", text=json.dumps(rules, indent=2))]

    return [TextContent(type="text", text=f"Unknown tool: {name}")]


async def main():
    """Run the MCP server over stdio."""
    logger.info("MCP Server starting (stdio mode)")
    async with stdio_server() as (read_stream, write_stream):
        await server.run(read_stream, write_stream, server.create_initialization_options())


if __name__ == "__main__":
    asyncio.run(main())
