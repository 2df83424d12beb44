"""
GUI for SciCal Scientific Calculator
Tkinter-based interface optimized for a 720x480 display
"""
import tkinter as tk
from tkinter import ttk, messagebox
import config
from calculator import AngleMode, ExpressionEditor, SyntaxRejection, UnaryFunctionKind
from evaluator import format_number
from logging_config import get_logger

logger = get_logger("gui")


class TkScheduler:
    """Fires deferred callbacks on the Tk event loop"""

    def __init__(self, root):
        self.root = root

    def call_later(self, delay, callback):
        return _TkTimer(self.root, self.root.after(int(delay * 1000), callback))


class _TkTimer:
    def __init__(self, root, after_id):
        self.root = root
        self.after_id = after_id

    def cancel(self):
        try:
            self.root.after_cancel(self.after_id)
        except tk.TclError:
            # root already destroyed
            pass


class ScientificCalculatorGUI:
    # (label, action, kind); action is an editor method name or (method, argument)
    BUTTON_ROWS = [
        [("sin", ("append_function", "sin"), "mode"), ("cos", ("append_function", "cos"), "mode"),
         ("tan", ("append_function", "tan"), "mode"), ("log", ("append_function", "log10"), "mode"),
         ("ln", ("append_function", "ln"), "mode"), ("(", "append_open_paren", "operator"),
         (")", "append_close_paren", "operator")],
        [("asin", ("append_function", "asin"), "mode"), ("acos", ("append_function", "acos"), "mode"),
         ("atan", ("append_function", "atan"), "mode"), ("x²", ("apply_unary_function", UnaryFunctionKind.SQUARE), "mode"),
         ("√x", ("apply_unary_function", UnaryFunctionKind.SQRT), "mode"),
         ("1/x", ("apply_unary_function", UnaryFunctionKind.RECIPROCAL), "mode"),
         ("10ˣ", ("apply_unary_function", UnaryFunctionKind.TEN_POWER), "mode")],
        [("sinh", ("append_function", "sinh"), "mode"), ("cosh", ("append_function", "cosh"), "mode"),
         ("tanh", ("append_function", "tanh"), "mode"), ("n!", "factorial", "mode"),
         ("⌊x⌋", ("apply_unary_function", UnaryFunctionKind.FLOOR), "mode"),
         ("⌈x⌉", ("apply_unary_function", UnaryFunctionKind.CEIL), "mode"),
         ("|x|", ("apply_unary_function", UnaryFunctionKind.ABS), "mode")],
        [("7", ("append_digit", "7"), "normal"), ("8", ("append_digit", "8"), "normal"),
         ("9", ("append_digit", "9"), "normal"), ("÷", ("append_operator", "/"), "operator"),
         ("π", ("append_constant", "pi"), "mode"), ("C", "clear", "danger"), ("⌫", "backspace", "operator")],
        [("4", ("append_digit", "4"), "normal"), ("5", ("append_digit", "5"), "normal"),
         ("6", ("append_digit", "6"), "normal"), ("×", ("append_operator", "*"), "operator"),
         ("e", ("append_constant", "e"), "mode"), ("Rand", "append_random", "mode"),
         ("MC", "memory_clear", "mode")],
        [("1", ("append_digit", "1"), "normal"), ("2", ("append_digit", "2"), "normal"),
         ("3", ("append_digit", "3"), "normal"), ("−", ("append_operator", "-"), "operator"),
         ("MR", "memory_recall", "mode"), ("MS", "memory_store", "mode"), ("M+", "memory_add", "mode")],
        [("0", ("append_digit", "0"), "normal"), (".", "append_decimal_point", "normal"),
         ("=", "evaluate", "equals"), ("+", ("append_operator", "+"), "operator"),
         ("M−", "memory_subtract", "mode")],
    ]

    def __init__(self, root, dark_mode=config.DARK_MODE):
        self.root = root
        self.root.title(config.APP_NAME)
        self.root.geometry(f"{config.WINDOW_WIDTH}x{config.WINDOW_HEIGHT}")

        self.T: dict = config.get_theme(dark_mode)
        self._apply_ttk_styles()
        self.root.configure(bg=self.T["bg"])

        self.create_widgets()
        self.calculator = ExpressionEditor(presenter=self, scheduler=TkScheduler(root))
        self.update_display(self.calculator.display_text)
        self.root.bind('<Key>', self.on_key_press)

    # ── Theme helpers ──────────────────────────────────────────────────────────
    def _apply_ttk_styles(self):
        """Configure ttk widget styles for the active neumorphic palette."""
        T = self.T
        style = ttk.Style()
        try:
            style.theme_use("clam")
        except tk.TclError:
            logger.debug("clam theme unavailable, keeping default ttk theme")
        style.configure("Vertical.TScrollbar",
                        background=T["shadow_dark"], troughcolor=T["display_bg"],
                        borderwidth=0, relief="flat", width=10, arrowsize=0)
        style.map("Vertical.TScrollbar",
                  background=[("active", T["accent"]), ("pressed", T["accent"]),
                              ("!disabled", T["shadow_dark"])])

    def _neu_btn(self, parent, text, command=None, kind="normal", **kw):
        """Create a neumorphic styled flat button."""
        T = self.T
        if kind == "equals":
            bg, fg, abg = T["equals_bg"], T["equals_fg"], T["success"]
        elif kind == "operator":
            bg, fg, abg = T["btn_bg"], T["operator_fg"], T["bg_dark"]
        elif kind == "mode":
            bg, fg, abg = T["mode_bg"], T["mode_fg"], T["shadow_dark"]
        elif kind == "danger":
            bg, fg, abg = T["danger"], "#FFFFFF", T["bg_dark"]
        else:
            bg, fg, abg = T["btn_bg"], T["btn_fg"], T["bg_dark"]
        return tk.Button(
            parent, text=text, command=command,
            font=kw.pop("font", config.BUTTON_FONT),
            bg=bg, fg=fg,
            activebackground=abg, activeforeground=fg,
            relief=tk.FLAT, bd=0, cursor="hand2",
            highlightthickness=1,
            highlightbackground=T["shadow_dark"],
            highlightcolor=T["shadow_lite"],
            **kw
        )

    def create_widgets(self):
        T = self.T

        # --- LEFT: display + keypad ---
        left = tk.Frame(self.root, bg=T["bg"])
        left.pack(side=tk.LEFT, fill=tk.BOTH, expand=True, padx=(8, 4), pady=8)

        self.display = tk.Label(left, text="0", anchor=tk.E, font=config.DISPLAY_FONT,
                                bg=T["display_bg"], fg=T["display_fg"], padx=10, pady=10)
        self.display.pack(side=tk.TOP, fill=tk.X, pady=(0, 6))

        status = tk.Frame(left, bg=T["bg"])
        status.pack(side=tk.TOP, fill=tk.X, pady=(0, 4))
        self.angle_button = self._neu_btn(status, "DEG", command=self.toggle_angle_mode,
                                          kind="mode", width=5)
        self.angle_button.pack(side=tk.LEFT)
        self.memory_label = tk.Label(status, text="M: 0", font=config.LABEL_FONT,
                                     bg=T["bg"], fg=T["subtext"])
        self.memory_label.pack(side=tk.RIGHT)

        keypad = tk.Frame(left, bg=T["bg"])
        keypad.pack(side=tk.TOP, fill=tk.BOTH, expand=True)
        for r, row in enumerate(self.BUTTON_ROWS):
            keypad.rowconfigure(r, weight=1)
            for c, (label, action, kind) in enumerate(row):
                keypad.columnconfigure(c, weight=1)
                btn = self._neu_btn(keypad, label, command=lambda a=action: self.calculator_button_click(a),
                                    kind=kind)
                btn.grid(row=r, column=c, sticky="nsew", padx=2, pady=2)

        # --- RIGHT: history ---
        right = tk.Frame(self.root, bg=T["bg"])
        right.pack(side=tk.RIGHT, fill=tk.Y, padx=(4, 8), pady=8)
        tk.Label(right, text="History", font=config.LABEL_FONT,
                 bg=T["bg"], fg=T["accent"]).pack(side=tk.TOP, anchor=tk.W)

        list_frame = tk.Frame(right, bg=T["bg"])
        list_frame.pack(side=tk.TOP, fill=tk.BOTH, expand=True)
        self.history_list = tk.Listbox(list_frame, width=24, font=config.LABEL_FONT,
                                       bg=T["listbox_bg"], fg=T["listbox_fg"],
                                       relief=tk.FLAT, highlightthickness=0)
        history_sb = ttk.Scrollbar(list_frame, orient=tk.VERTICAL, command=self.history_list.yview)
        self.history_list.configure(yscrollcommand=history_sb.set)
        self.history_list.pack(side=tk.LEFT, fill=tk.BOTH, expand=True)
        history_sb.pack(side=tk.RIGHT, fill=tk.Y)

    # ── Input dispatch ─────────────────────────────────────────────────────
    def calculator_button_click(self, action):
        """Handle calculator button clicks"""
        if isinstance(action, tuple):
            method, argument = action
            args = (argument,)
        else:
            method, args = action, ()
        try:
            getattr(self.calculator, method)(*args)
        except SyntaxRejection as e:
            messagebox.showwarning(config.APP_NAME, str(e))

    def toggle_angle_mode(self):
        self.calculator_button_click("toggle_angle_mode")

    def on_key_press(self, event):
        """Handle keyboard input"""
        key = event.char
        if key and key in '0123456789':
            self.calculator_button_click(("append_digit", key))
        elif key and key in '+-*/':
            self.calculator_button_click(("append_operator", key))
        elif key == '.':
            self.calculator_button_click("append_decimal_point")
        elif key == '(':
            self.calculator_button_click("append_open_paren")
        elif key == ')':
            self.calculator_button_click("append_close_paren")
        elif key == '!':
            self.calculator_button_click("factorial")
        elif key in ['\r', '\n', '=']:
            self.calculator_button_click("evaluate")
        elif event.keysym == 'BackSpace':
            self.calculator_button_click("backspace")
        elif event.keysym == 'Escape':
            self.calculator_button_click("clear")

    # ── Presenter notifications ────────────────────────────────────────────
    def update_display(self, text):
        """Update the display"""
        self.display.config(text=str(text))

    def on_display_changed(self, text):
        self.update_display(text)

    def on_history_entry_added(self, expression, result):
        self.history_list.insert(0, f"{expression} = {format_number(result)}")
        if self.history_list.size() > config.MAX_HISTORY_ITEMS:
            self.history_list.delete(tk.END)

    def on_memory_changed(self, text):
        self.memory_label.config(text=f"M: {text}")

    def on_angle_mode_changed(self, mode):
        self.angle_button.config(text="DEG" if mode is AngleMode.DEGREES else "RAD")

    def close(self):
        self.calculator.close()
        self.root.destroy()
