"""
Sample root graph for trying graphhook.

The nodes stand in for a host environment's collaborators: an in-memory
process table, a window manager and an app runtime that uses both. None of
it touches the operating system; it exists so there is something realistic
to locate and hook, e.g. from the command line:

    graphhook locate graphhook.demo:spawn --root graphhook.demo:build_root
"""

import time
from typing import Any, Dict, List, Optional

from .core.object_model import GraphObject, obj


# Process manager

def spawn(this: GraphObject, content: str, kind: str = "direct") -> int:
    """Register a new running process and return its pid."""
    pid = this["next_pid"]
    this["next_pid"] = pid + 1
    this["table"][pid] = {
        "pid": pid,
        "kind": kind,
        "content": content,
        "status": "running",
        "start_time": time.time(),
        "windows": [],
    }
    return pid


def associate_window(this: GraphObject, pid: int, window_id: str) -> bool:
    record = this["table"].get(pid)
    if record is None or record["status"] != "running":
        return False
    if window_id not in record["windows"]:
        record["windows"].append(window_id)
    return True


def kill(this: GraphObject, pid: int) -> bool:
    """Remove a process and close the windows it owns."""
    record = this["table"].pop(pid, None)
    if record is None:
        return False
    for window_id in record["windows"]:
        this["wm"].invoke("close", window_id)
    return True


def info(this: GraphObject, pid: int) -> Optional[Dict[str, Any]]:
    record = this["table"].get(pid)
    if record is None:
        return None
    return {key: record[key] for key in ("pid", "status", "start_time")}


def list_processes(this: GraphObject) -> List[Dict[str, Any]]:
    return [this.invoke("info", pid) for pid in list(this["table"])]


# Window manager

def create_window(
    this: GraphObject,
    title: str,
    url: str = "",
    width: str = "600px",
    height: str = "400px",
    resizable: bool = True,
) -> GraphObject:
    window_id = f"win-{this['next_id']}"
    this["next_id"] += 1
    window = obj(
        id=window_id,
        title=title,
        url=url,
        width=width,
        height=height,
        resizable=resizable,
        closed=False,
    )
    this["windows"].append(window)
    return window


def close_window(this: GraphObject, window_id: str) -> bool:
    for index, window in enumerate(this["windows"]):
        if window["id"] == window_id:
            window["closed"] = True
            del this["windows"][index]
            return True
    return False


# Runtime

def exec_manifest(this: GraphObject, manifest: Dict[str, Any]) -> int:
    """Start an app described by ``manifest``; windowed kinds get a window."""
    kind = manifest.get("type", "app")
    pid = this["process"].invoke("spawn", manifest.get("source", ""), kind=kind)

    if kind in ("app", "webview"):
        window = this["wm"].invoke(
            "create",
            manifest.get("title", manifest.get("id", "app")),
            url=manifest.get("source", ""),
            width=manifest.get("width", "600px"),
            height=manifest.get("height", "400px"),
        )
        this["process"].invoke("associate_window", pid, window["id"])
    return pid


def build_root() -> GraphObject:
    """Build a fresh sample root."""
    wm = obj(windows=[], next_id=0, create=create_window, close=close_window)
    process = obj(
        table={},
        next_pid=0,
        wm=wm,
        spawn=spawn,
        kill=kill,
        info=info,
        list=list_processes,
        associate_window=associate_window,
    )
    runtime = obj(process=process, wm=wm, exec=exec_manifest)
    root = obj(process=process, wm=wm, runtime=runtime)
    root.define("version", "0.1.0", writable=False, configurable=False)
    return root
