"""Minimal terminal front end for the conversation controller."""

import asyncio

from chat_core import ConversationController, JsonTokenStore, SessionClient


def render(state):
    if state.status == "error":
        print(f"! {state.error}")


async def main() -> None:
    client = SessionClient(JsonTokenStore())
    controller = await ConversationController.open(client)
    controller.subscribe(render)
    for msg in controller.messages:
        print(f"{msg.role}: {msg.content}")

    while True:
        text = (await asyncio.to_thread(input, "> ")).strip()
        if not text:
            continue
        if text in ("/quit", "/exit"):
            break
        if text == "/reset":
            await controller.reset_session()
            continue
        await controller.send_message(text)
        last = controller.messages[-1]
        if last.role == "assistant":
            print(f"assistant: {last.content}")


if __name__ == "__main__":
    asyncio.run(main())
