import asyncio
import threading
import tkinter as tk
from tkinter import scrolledtext

from diagnostic_core.api.service import build_store
from diagnostic_core.gui.presenter import ChatPresenter, ViewState


class TkNotifier:
    """把错误通知显示在状态栏上（在 UI 线程执行）。"""

    def __init__(self, root, status_label):
        self.root = root
        self.status = status_label

    def notify(self, kind, title, message):
        self.root.after(0, lambda: self.status.config(text=f"{title}: {message}"))


class App:
    def __init__(self, root):
        self.root = root
        self.root.title("Diagnostic Assistant")
        # asyncio 事件循环跑在后台线程，store 的所有状态迁移都在该线程执行
        self.loop = asyncio.new_event_loop()
        threading.Thread(target=self.loop.run_forever, daemon=True).start()

        top = tk.Frame(root)
        top.pack(fill=tk.BOTH, expand=True)
        self.chat = scrolledtext.ScrolledText(top, width=80, height=24, wrap=tk.WORD)
        self.chat.pack(fill=tk.BOTH, expand=True)
        self.chat.tag_config("user", foreground="#1a73e8")
        self.chat.tag_config("assistant", foreground="#34a853")
        self.chat.tag_config("system", foreground="#5f6368")
        self.chat.tag_config("error", foreground="#d93025")
        row = tk.Frame(top)
        row.pack(fill=tk.X)
        self.entry = tk.Text(row, height=3)
        self.entry.pack(side=tk.LEFT, fill=tk.X, expand=True)
        self.entry.bind("<KeyRelease>", self.on_input_change)
        self.entry.bind("<Return>", self.on_return)
        self.send_btn = tk.Button(row, text="Send", command=self.on_send)
        self.send_btn.pack(side=tk.LEFT)
        tk.Button(row, text="Clear", command=self.on_clear).pack(side=tk.LEFT)
        tk.Button(row, text="Close", command=self.on_close_click).pack(side=tk.LEFT)
        self.status = tk.Label(top, text="Ready", anchor=tk.W)
        self.status.pack(fill=tk.X)

        store = build_store(notifier=TkNotifier(root, self.status))
        self.presenter = ChatPresenter(store, on_close=self.root.destroy)
        self.presenter.subscribe(lambda state: self.root.after(0, lambda: self.render(state)))
        self.render(self.presenter.view())

    def _call(self, fn, *args):
        # 把意图投递到事件循环线程，保持单写者
        self.loop.call_soon_threadsafe(fn, *args)

    def on_input_change(self, event):
        self._call(self.presenter.set_input, self.entry.get("1.0", tk.END).rstrip("\n"))

    def on_return(self, event):
        shift = bool(event.state & 0x0001)
        ctrl = bool(event.state & 0x0004)
        if shift and not ctrl:
            return None
        self._call(self._press_enter, self._entry_text(), shift, ctrl)
        return "break"

    def on_send(self):
        self._call(self._press_enter, self._entry_text(), False, False)

    def _entry_text(self):
        return self.entry.get("1.0", tk.END).rstrip("\n")

    def _press_enter(self, text, shift, ctrl):
        # 在事件循环线程执行；提交被拒绝（如请求在途）时保留输入框内容
        self.presenter.set_input(text)
        if self.presenter.handle_key("Enter", shift=shift, ctrl=ctrl) and not self.presenter.input_value:
            self.root.after(0, lambda: self.entry.delete("1.0", tk.END))

    def on_clear(self):
        self.entry.delete("1.0", tk.END)
        self._call(self.presenter.reset)

    def on_close_click(self):
        self.loop.call_soon_threadsafe(self.loop.stop)
        self.presenter.close()

    def render(self, state: ViewState):
        self.chat.delete("1.0", tk.END)
        if state.show_welcome:
            self.chat.insert(tk.END, "Describe the issue you are seeing and press Enter.\n", "system")
        for m in state.messages:
            if m.is_ai:
                self.chat.insert(tk.END, f"[{m.timestamp}] Assistant:\n{m.html}\n\n", "assistant")
            else:
                self.chat.insert(tk.END, f"[{m.timestamp}] You:\n{m.text}\n\n", "user")
        if state.is_sending:
            self.chat.insert(tk.END, "Analyzing...\n", "system")
        if state.error_text:
            self.chat.insert(tk.END, f"Error: {state.error_text}\n", "error")
        self.chat.see(tk.END)
        self.send_btn.config(state=tk.DISABLED if state.is_sending else tk.NORMAL)
        if not state.error_text:
            self.status.config(text="Sending..." if state.is_sending else f"{state.character_count} chars")


if __name__ == "__main__":
    root = tk.Tk()
    app = App(root)
    root.mainloop()
