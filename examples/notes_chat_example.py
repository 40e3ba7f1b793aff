"""Interactive chat with an in-process note-taking tool provider.

Demonstrates:
- Defining tools with @tool and serving them with FunctionToolProvider
- Aggregating providers in a ProviderRegistry
- Building a Runner from CONDUCTOR_* settings
- Streaming events to the terminal with Runner.iter()

Usage:
    CONDUCTOR_LLM_MODEL=gpt-4o-mini python examples/notes_chat_example.py
    CONDUCTOR_LLM_BASE_URL=http://localhost:8000/v1 \\
        CONDUCTOR_LLM_MODEL=Qwen/Qwen3-8B python examples/notes_chat_example.py
"""

import asyncio

from conductor import (
    ContentEvent,
    ErrorEvent,
    FunctionToolProvider,
    Message,
    MessageRole,
    ProviderRegistry,
    RunResult,
    Runner,
    ToolExecutionResultEvent,
    ToolExecutionStartEvent,
    configure_logging,
    get_settings,
    tool,
)

NOTES: dict[str, str] = {}


@tool
def write_note(title: str, body: str):
    """Save a note.

    Args:
        title: Short title used to look the note up later.
        body: Note text.
    """
    NOTES[title] = body
    return f"Saved note '{title}'"


@tool
def read_note(title: str):
    """Read a saved note.

    Args:
        title: Title of the note.
    """
    if title not in NOTES:
        raise KeyError(f"No note titled '{title}'")
    return NOTES[title]


@tool
def list_notes():
    """List all note titles."""
    return {"titles": sorted(NOTES)}


async def main():
    settings = get_settings()
    configure_logging("WARNING")
    registry = ProviderRegistry([
        FunctionToolProvider("notes", [write_note, read_note, list_notes]),
    ])
    runner = Runner.from_settings(settings, registry)
    transcript = [Message(
        role=MessageRole.SYSTEM,
        content="You are a note-taking assistant. Use your tools.",
    )]

    while True:
        try:
            text = input("\nyou> ")
        except (EOFError, KeyboardInterrupt):
            print("Farewell!")
            return
        transcript.append(Message(role=MessageRole.USER, content=text))

        print("assistant> ", end="", flush=True)
        result = RunResult()
        async for event in runner.iter(transcript, registry.list_tools(), result):
            if isinstance(event, ContentEvent):
                print(event.content, end="", flush=True)
            elif isinstance(event, ToolExecutionStartEvent):
                print(f"\n  [calling {event.tool_name}]", flush=True)
            elif isinstance(event, ToolExecutionResultEvent):
                status = "failed" if event.is_error else "ok"
                print(f"  [{event.tool_name}: {status}]", flush=True)
            elif isinstance(event, ErrorEvent):
                print(f"\n  [error: {event.error}]")
        print()
        transcript = result.transcript


if __name__ == "__main__":
    asyncio.run(main())
