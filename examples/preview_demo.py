"""Minimal demonstration of the preview gateway."""

from genai_gateway import GenAIClient, load_settings

if __name__ == "__main__":
    client = GenAIClient(settings=load_settings(project_path="."))
    model = client.get_generative_model("gemini-pro", system_instruction="Answer briefly.")
    chat = model.start_chat()
    question = "What can you do in preview mode?"
    reply = chat.send_message(question)
    print("User:", question)
    print("Model:", reply.text)
    with chat.send_message_stream("Stream the answer, please.") as stream:
        for chunk in stream:
            print(chunk.text, end="", flush=True)
    print()
