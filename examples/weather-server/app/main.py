import asyncio
import logging

import httpx

from pico_ab import ToolDispatcher, ToolRequest
from pico_ab.bootstrap import init
from pico_ab.logging import configure_logging


async def main():
    configure_logging(logging.INFO)

    container = init(
        modules=[
            "app.clients",
            "app.tools",
        ],
    )

    dispatcher = await container.aget(ToolDispatcher)

    # One session id keeps every call of this run on the same treatment
    session = "demo-session"

    tools = await dispatcher.list_tools(ToolRequest(session_id=session))
    for descriptor in tools:
        print(f"{descriptor.name}: {descriptor.description} {descriptor.meta}")

    result = await dispatcher.call_tool(
        ToolRequest(
            name="get_forecast",
            arguments={"latitude": 47.6062, "longitude": -122.3321},
            session_id=session,
        )
    )
    print(f"\n[{result.tool_name}]\n{result.content}")

    await container.get(httpx.AsyncClient).aclose()
    await container.ashutdown()


if __name__ == "__main__":
    asyncio.run(main())
