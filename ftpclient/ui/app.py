import os
import tempfile
import logging
from datetime import datetime

import streamlit as st

from ftpclient.config import ClientConfig, configure_logging
from ftpclient.core.commands import ClientCommandHandler
from ftpclient.core.sinks import CollectingSink
from ftpclient.modes import SessionState, TransferMode, TransferType
from ftpclient.ui.shell import FtpShell

config = ClientConfig.from_env()
configure_logging(config)
logger = logging.getLogger(__name__)

DOWNLOAD_DIR = os.getenv("FTP_CLIENT_DOWNLOAD_DIR", os.path.join(tempfile.gettempdir(), "ftpclient"))

st.set_page_config(page_title="FTP Client", layout="wide")

if "handler" not in st.session_state:
    st.session_state["handler"] = None
if "transcript" not in st.session_state:
    st.session_state["transcript"] = []


def echo(line: str):
    st.session_state["transcript"].append(line)


def no_prompt(prompt: str) -> str:
    # Arguments must be typed on the command line in the UI
    raise EOFError(prompt)


st.title("FTP Client")
password = ""

with st.sidebar:
    st.header("Connection")
    host = st.text_input("Host", value=config.host or "127.0.0.1")
    port = st.number_input("Port", min_value=1, max_value=65535, value=config.port)
    passive = st.checkbox("Passive mode", value=config.mode is TransferMode.PASSIVE)
    active_address = st.text_input("Active address (optional)", value=config.active_address or "")

    if st.button("Connect"):
        logger.info(f"[UI] Connect button clicked: {host}:{port}")
        cfg = ClientConfig.from_env(host=host, port=int(port),
                                    mode=TransferMode.PASSIVE if passive else TransferMode.ACTIVE,
                                    active_address=active_address or None)
        previous = st.session_state.pop("handler", None)
        if previous is not None:
            previous.close()
        handler = ClientCommandHandler.from_config(cfg, echo=echo)
        if handler.open():
            st.session_state["handler"] = handler
            st.success(f"Connected to {host}:{port}")
        else:
            st.error(f"Connection to {host}:{port} failed")

    handler: ClientCommandHandler = st.session_state.get("handler")
    if handler is not None:
        st.caption(f"Session: {handler.conn.state.value} · mode: {handler.mode.value}"
                   f" · type: {handler.conn.transfer_type.name}")

        st.header("Login")
        username = st.text_input("Username", value="anonymous")
        password = st.text_input("Password", type="password")
        if st.button("Login"):
            if handler.user(username) and handler.conn.state is not SessionState.READY:
                handler.password(password)

        if st.button("Toggle passive/active"):
            handler.toggle_mode()
        transfer_type = st.radio("Transfer type", [t.name for t in TransferType], horizontal=True)
        if st.button("Set type"):
            handler.set_type(TransferType[transfer_type])

        if st.button("Disconnect"):
            logger.info("[UI] Disconnect button clicked")
            handler.close()
            st.session_state["handler"] = None
            st.info("Disconnected")

handler = st.session_state.get("handler")

col1, col2 = st.columns([3, 1])

with col1:
    st.subheader("Terminal")
    cmd = st.text_input("Command", placeholder="e.g. cd pub, dir, pwd, help", key="cmd_input")
    if st.button("Run") and cmd:
        if handler is None:
            st.error("Not connected. Connect first.")
        else:
            logger.info(f"[UI] Command executed: {cmd}")
            echo(f"FTP> {cmd}")
            shell = FtpShell(handler, read_input=no_prompt,
                             read_password=lambda prompt: password, echo=echo)
            if not shell.dispatch(cmd):
                st.session_state["handler"] = None
                handler = None

    st.subheader("Listing")
    list_path = st.text_input("Directory", value="", key="list_path")
    if st.button("List") and handler is not None:
        sink = CollectingSink()
        with st.spinner("Fetching listing..."):
            ok = handler.list(list_path, sink=sink)
        if ok:
            st.text_area("Listing", value=sink.text, height=200)
        else:
            st.error("Listing failed, see the transcript")

    st.subheader("Download")
    remote = st.text_input("Remote file", key="remote_file")
    if st.button("Download") and remote and handler is not None:
        local = os.path.join(DOWNLOAD_DIR, os.path.basename(remote.rstrip("/")) or "download")
        with st.spinner("Downloading..."):
            ok = handler.retr(remote, local)
        if ok:
            with open(local, "rb") as f:
                st.download_button("Save file", data=f.read(), file_name=os.path.basename(local))
        else:
            st.error(f"RETR {remote} failed, see the transcript")

    st.code("\n".join(st.session_state["transcript"][-200:]) or "(no output yet)")

with col2:
    st.subheader("History")
    if handler is None:
        st.info("No history: not connected")
    else:
        if st.button("Clear History"):
            handler.clear_history()
            st.rerun()
        for entry in reversed(handler.get_history()[-100:]):
            t = entry.get("time")
            time_str = t.isoformat(timespec="seconds") if isinstance(t, datetime) else str(t)
            with st.expander(f"{time_str} | {entry.get('command')}"):
                if entry.get("data") is not None:
                    st.text_area("Data", value=str(entry.get("data")), height=150)
                if entry.get("file"):
                    st.write(f"File: {entry['file']}")
                if entry.get("response"):
                    st.code(entry["response"])
                if not entry.get("ok"):
                    st.error("This entry had an error")

st.markdown("---")
st.caption("FTP client UI: transcript, listings, downloads and command history.")
