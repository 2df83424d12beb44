"""
SciCal Scientific Calculator
Main application entry point
"""
import tkinter as tk
import config
from gui import ScientificCalculatorGUI
from logging_config import get_logger, setup_logging

logger = get_logger("app")


def main():
    setup_logging(level=config.LOG_LEVEL, log_file=config.LOG_FILE, json_format=config.LOG_JSON)
    logger.info("Starting %s %s", config.APP_NAME, config.VERSION)

    root = tk.Tk()
    app = ScientificCalculatorGUI(root)
    root.protocol("WM_DELETE_WINDOW", app.close)
    root.mainloop()
    logger.info("%s closed", config.APP_NAME)


if __name__ == "__main__":
    main()
