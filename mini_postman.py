#!/usr/bin/env python3
# Mini Postman (ttkbootstrap)
# - Params / Headers / Auth / Body tabs feed one RequestDescription
# - Request runs on a worker thread; result comes back through a queue
# - Status bar is colour-coded by status class
# - Copy as cURL
import logging
import queue
import threading
import tkinter as tk
from tkinter import messagebox, scrolledtext, ttk
from typing import Iterable, Optional, Tuple

from ttkbootstrap import Style

from http_models import DEFAULT_CONTENT_TYPE, BasicAuth, BearerAuth, HttpMethod, NoAuth, RequestDescription
from http_service import HttpRequestService
from request_builder import build, to_curl
from response_formatter import format_response, status_category, status_summary, transport_failure
from settings import configure_logging, load_settings

log = logging.getLogger(__name__)

APP_TITLE = "Mini Postman"
GEOMETRY = "900x720"
AUTH_TYPES = ("No Auth", "Basic Auth", "Bearer Token")
DEFAULT_HEADER_ROWS = (("Content-Type", DEFAULT_CONTENT_TYPE),)
STATUS_STYLES = {
    "success": "success",
    "informational": "secondary",
    "redirect": "info",
    "client_error": "warning",
    "server_error": "danger",
    "error": "danger",
}


def collect_description(method: str, url: str, params: Iterable[Tuple[str, str]],
                        headers: Iterable[Tuple[str, str]], auth_type: str = "No Auth",
                        username: str = "", password: str = "", token: str = "",
                        body: Optional[str] = None) -> RequestDescription:
    if auth_type == "Basic Auth":
        auth = BasicAuth(username, password)
    elif auth_type == "Bearer Token":
        auth = BearerAuth(token)
    else:
        auth = NoAuth()
    return RequestDescription(
        url=url.strip(),
        method=HttpMethod.parse(method),
        headers={k: v for k, v in headers},
        query_params=tuple(params),
        auth=auth,
        body=body if body and body.strip() else None,
    )


class _KVEditor(ttk.Frame):
    def __init__(self, master, title="Items"):
        super().__init__(master)
        toolbar = ttk.Frame(self)
        ttk.Label(toolbar, text=title).pack(side="left")
        ttk.Button(toolbar, text="+", width=3, command=self.add_row).pack(side="left", padx=(3, 0))
        ttk.Button(toolbar, text="−", width=3, command=self.remove_selected).pack(side="left", padx=(3, 0))
        ttk.Button(toolbar, text="Clear", width=5, command=self.clear).pack(side="left")
        toolbar.pack(fill="x", pady=(0, 3))
        self.tree = ttk.Treeview(self, columns=("key", "value"), show="headings", height=5)
        self.tree.heading("key", text="Key")
        self.tree.heading("value", text="Value")
        self.tree.column("key", width=160, anchor="w")
        self.tree.column("value", width=320, anchor="w")
        self.tree.pack(fill="both", expand=True)
        self.tree.bind("<Double-1>", self._edit_cell)

    def add_row(self, key="", value=""):
        return self.tree.insert("", "end", values=(key, value))

    def remove_selected(self):
        for iid in self.tree.selection():
            self.tree.delete(iid)

    def clear(self):
        for iid in self.tree.get_children():
            self.tree.delete(iid)

    def items(self):
        out = []
        for iid in self.tree.get_children():
            k, v = self.tree.item(iid, "values")
            out.append((str(k), str(v)))
        return out

    def _edit_cell(self, e):
        if self.tree.identify("region", e.x, e.y) != "cell":
            return
        rowid = self.tree.identify_row(e.y)
        colid = self.tree.identify_column(e.x)
        if not rowid or not colid:
            return
        x, y, w, h = self.tree.bbox(rowid, colid)
        idx = int(colid[1:]) - 1
        vals = list(self.tree.item(rowid, "values"))
        entry = ttk.Entry(self.tree)
        entry.insert(0, vals[idx] if idx < len(vals) else "")
        entry.select_range(0, "end")
        entry.focus_set()
        entry.place(x=x, y=y, width=w, height=h)

        def commit(*_):
            vals[idx] = entry.get()
            self.tree.item(rowid, values=vals)
            entry.destroy()
        entry.bind("<Return>", commit)
        entry.bind("<FocusOut>", commit)
        entry.bind("<Escape>", lambda *_: entry.destroy())


class MiniPostman(tk.Tk):
    def __init__(self, settings: Optional[dict] = None, service: Optional[HttpRequestService] = None):
        super().__init__()
        self.settings = settings or load_settings()
        self.style = Style(self.settings.get("theme", "flatly"))
        self.service = service or HttpRequestService.from_settings(self.settings)
        self.request_queue = queue.Queue()
        self.title(APP_TITLE)
        self.geometry(GEOMETRY)
        self._build_ui()
        self.protocol("WM_DELETE_WINDOW", self._on_close)
        self.after(100, self._process_queue)

    def _build_ui(self):
        top = ttk.Frame(self, padding=(6, 6, 6, 0))
        top.pack(fill="x")
        self.method_var = tk.StringVar(value=self.settings.get("default_method", "GET"))
        ttk.Combobox(top, textvariable=self.method_var, values=[m.value for m in HttpMethod],
                     width=9, state="readonly").pack(side="left")
        self.url_entry = ttk.Entry(top)
        self.url_entry.pack(side="left", padx=6, fill="x", expand=True)
        self.send_btn = ttk.Button(top, text="Send", bootstyle="success", command=self.send_request)
        self.send_btn.pack(side="left")
        ttk.Button(top, text="Copy as cURL", command=self._copy_curl).pack(side="left", padx=(6, 0))

        panes = ttk.PanedWindow(self, orient="vertical")
        panes.pack(fill="both", expand=True, padx=6, pady=6)

        req = ttk.Notebook(panes)
        self.params_kv = _KVEditor(req, "Query Params")
        self.headers_kv = _KVEditor(req, "Headers")
        for k, v in DEFAULT_HEADER_ROWS:
            self.headers_kv.add_row(k, v)
        req.add(self.params_kv, text="Params")
        req.add(self.headers_kv, text="Headers")
        req.add(self._build_auth_tab(req), text="Auth")
        self.body_text = scrolledtext.ScrolledText(req, wrap=tk.WORD, height=8, font=("Consolas", 10))
        req.add(self.body_text, text="Body")
        panes.add(req, weight=1)

        self.response_text = scrolledtext.ScrolledText(panes, wrap=tk.WORD, font=("Consolas", 10))
        panes.add(self.response_text, weight=2)

        self.status_label = ttk.Label(self, text="Status: Idle", anchor="w", padding=(6, 3))
        self.status_label.pack(side="bottom", fill="x")

    def _build_auth_tab(self, master):
        frame = ttk.Frame(master, padding=8)
        self.auth_var = tk.StringVar(value=AUTH_TYPES[0])
        ttk.Label(frame, text="Type:").grid(row=0, column=0, sticky="w")
        combo = ttk.Combobox(frame, textvariable=self.auth_var, values=AUTH_TYPES, state="readonly")
        combo.grid(row=0, column=1, sticky="ew", pady=(0, 6))
        combo.bind("<<ComboboxSelected>>", lambda _: self._update_auth_fields())
        self.username_var, self.password_var, self.token_var = tk.StringVar(), tk.StringVar(), tk.StringVar()
        self._auth_rows = {
            "Basic Auth": [
                (ttk.Label(frame, text="Username:"), ttk.Entry(frame, textvariable=self.username_var)),
                (ttk.Label(frame, text="Password:"), ttk.Entry(frame, textvariable=self.password_var, show="*")),
            ],
            "Bearer Token": [
                (ttk.Label(frame, text="Token:"), ttk.Entry(frame, textvariable=self.token_var)),
            ],
        }
        frame.columnconfigure(1, weight=1)
        self._update_auth_fields()
        return frame

    def _update_auth_fields(self):
        for rows in self._auth_rows.values():
            for label, entry in rows:
                label.grid_remove()
                entry.grid_remove()
        for i, (label, entry) in enumerate(self._auth_rows.get(self.auth_var.get(), []), start=1):
            label.grid(row=i, column=0, sticky="w", pady=2)
            entry.grid(row=i, column=1, sticky="ew", pady=2)

    def _current_description(self) -> Optional[RequestDescription]:
        url = self.url_entry.get().strip()
        if not url:
            messagebox.showerror("Error", "URL cannot be empty.")
            return None
        return collect_description(
            self.method_var.get(), url, self.params_kv.items(), self.headers_kv.items(),
            auth_type=self.auth_var.get(), username=self.username_var.get(),
            password=self.password_var.get(), token=self.token_var.get(),
            body=self.body_text.get("1.0", "end-1c"),
        )

    def _copy_curl(self):
        desc = self._current_description()
        if desc is None:
            return
        self.clipboard_clear()
        self.clipboard_append(to_curl(build(desc)))
        messagebox.showinfo("cURL", "Copied.")

    def send_request(self):
        desc = self._current_description()
        if desc is None:
            return
        self.response_text.delete("1.0", "end")
        self.status_label.config(text="Status: Sending...", bootstyle="secondary")
        self.send_btn.config(state="disabled")
        threading.Thread(target=self._send_request_thread, args=(desc,), daemon=True).start()

    def _send_request_thread(self, desc: RequestDescription):
        try:
            result = self.service.send(desc)
        except Exception as e:
            log.exception("Request worker failed")
            result = format_response(transport_failure(e))
        self.request_queue.put(result)

    def _process_queue(self):
        try:
            response, text = self.request_queue.get_nowait()
        except queue.Empty:
            pass
        else:
            self._render_response(response, text)
        finally:
            self.after(100, self._process_queue)

    def _render_response(self, response, text):
        self.send_btn.config(state="normal")
        style = STATUS_STYLES[status_category(response.status_code)]
        self.status_label.config(text=status_summary(response), bootstyle=style)
        self.response_text.delete("1.0", "end")
        self.response_text.insert("1.0", text)

    def _on_close(self):
        self.service.close()
        self.destroy()


def main():
    settings = load_settings()
    configure_logging(settings.get("log_level", "INFO"))
    log.info(f"Starting {APP_TITLE}")
    MiniPostman(settings).mainloop()


if __name__ == "__main__":
    main()
