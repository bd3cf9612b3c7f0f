# peer.py
# Browser front-end for the chat server: python peer.py, then open the printed URL.
import argparse

import gradio as gr

from client import ChatClient
from settings import DEFAULT_PORT

DEFAULT_HOST = "127.0.0.1"

# -------- live clients (not in gr.State) --------
CLIENTS: dict[str, ChatClient] = {}

SYSTEM_SUFFIXES = (
    " has joined the chat.",
    " has left the chat.",
    " has disconnected.",
)


def _get_client(request: gr.Request) -> ChatClient | None:
    return CLIENTS.get(request.session_hash)


def _ensure_client(request: gr.Request) -> ChatClient:
    c = CLIENTS.get(request.session_hash)
    if c is None:
        c = ChatClient()
        CLIENTS[request.session_hash] = c
    return c


def split_line(line: str):
    """Turn one server line into a (speaker, text) transcript row."""
    if line.endswith(SYSTEM_SUFFIXES) or " is now known as " in line:
        return ("•", line)
    if line.startswith("(private) ") and ": " in line:
        who, text = line[len("(private) "):].split(": ", 1)
        return (f"{who} (private)", text)
    if ": " in line:
        who, text = line.split(": ", 1)
        return (who, text)
    return ("•", line)


# --- Gradio callbacks (State only holds simple data) ---
def do_connect(host, port, request: gr.Request):
    c = _ensure_client(request)
    msg = c.connect(host, port)
    return gr.update(value=msg, visible=True)


def do_disconnect(request: gr.Request):
    c = CLIENTS.pop(request.session_hash, None)
    if c:
        c.send_line("/quit")
        c.disconnect()
    return gr.update(value="Disconnected.", visible=True)


def send_message(user_msg, chat_history, request: gr.Request):
    user_msg = (user_msg or "").strip()
    if not user_msg:
        return "", chat_history
    c = _get_client(request)
    if c is None or not c.running:
        return "", chat_history + [("•", "not connected")]
    c.send_line(user_msg)
    return "", chat_history


def poll_server(chat_history, request: gr.Request):
    c = _get_client(request)
    if not c:
        return chat_history
    for line in c.drain():
        chat_history = chat_history + [split_line(line)]
    return chat_history


def build_app(host=DEFAULT_HOST, port=DEFAULT_PORT):
    with gr.Blocks(title="Chat Client") as demo:
        gr.Markdown("## Chat Client")
        with gr.Row():
            host_box = gr.Textbox(value=host, label="Host", scale=0)
            port_box = gr.Textbox(value=str(port), label="Port", scale=0)
            connect = gr.Button("Connect", variant="primary")
            disconnect = gr.Button("Disconnect")

        notice = gr.Markdown(visible=False)
        chat = gr.Chatbot(height=420, type="tuples")
        msg = gr.Textbox(placeholder="Type a message, /nick, /msg, /list or /quit", label=None)
        send = gr.Button("Send")

        connect.click(do_connect, inputs=[host_box, port_box], outputs=[notice])
        disconnect.click(do_disconnect, inputs=None, outputs=[notice])
        send.click(send_message, inputs=[msg, chat], outputs=[msg, chat])
        msg.submit(send_message, inputs=[msg, chat], outputs=[msg, chat])

        gr.Timer(0.1).tick(poll_server, inputs=[chat], outputs=[chat])
    return demo


if __name__ == "__main__":
    p = argparse.ArgumentParser(description="Browser chat client")
    p.add_argument("--host", default=DEFAULT_HOST)
    p.add_argument("--port", type=int, default=DEFAULT_PORT)
    args = p.parse_args()
    build_app(args.host, args.port).queue().launch()
