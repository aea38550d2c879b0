"""Minimal demonstration of the diagnostic conversation pipeline."""

import asyncio

from diagnostic_core import build_store, run_diagnostic_chat

if __name__ == "__main__":
    question = "I can't see a field on the Account page"
    result = asyncio.run(run_diagnostic_chat(question, store=build_store()))
    print("User:", question)
    for message in result["messages"]:
        if message["role"] == "assistant":
            print("Assistant:", message["content"])
    if result["error"]:
        print("Error:", result["error"])
