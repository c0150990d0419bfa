import logging

RESET = "\033[0m"
DIM = "\033[2m"
BOLD = "\033[1m"
RED = "\033[31m"
GREEN = "\033[32m"
YELLOW = "\033[33m"
CYAN = "\033[36m"
MAGENTA = "\033[35m"

LEVEL_COLORS = {
    logging.DEBUG: DIM,
    logging.INFO: GREEN,
    logging.WARNING: YELLOW,
    logging.ERROR: RED,
    logging.CRITICAL: RED + BOLD,
}


# Message prefixes emitted by the poller, sessions, client and CLI.
HIGHLIGHTS = (
    ("Poll state:", BOLD + CYAN),
    ("Streaming session", MAGENTA),
    ("Transcript:", CYAN),
    ("Submitted", BOLD + GREEN),
)


class ColoredFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        color = LEVEL_COLORS.get(record.levelno, "")
        time = self.formatTime(record, self.datefmt)
        name = record.name.rsplit(".", 1)[-1]
        msg = record.getMessage()

        highlight = next((style for prefix, style in HIGHLIGHTS if msg.startswith(prefix)), None)
        if highlight is None and record.levelno == logging.DEBUG:
            highlight = DIM
        elif highlight is None and record.levelno >= logging.WARNING:
            highlight = color
        if highlight:
            msg = f"{highlight}{msg}{RESET}"

        return f"{DIM}{time}{RESET} {color}{record.levelname:<5}{RESET} {DIM}{name:<16}{RESET} {msg}"


def configure_logging(verbose: bool = False, log_file: str = "") -> None:
    handler: logging.Handler = logging.StreamHandler()
    handler.setFormatter(ColoredFormatter(datefmt="%H:%M:%S"))
    handlers = [handler]
    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s %(name)s %(levelname)s %(message)s")
        )
        handlers.append(file_handler)

    logging.basicConfig(level=logging.DEBUG if verbose else logging.INFO, handlers=handlers, force=True)
    if verbose:
        logging.getLogger("grpc").setLevel(logging.INFO)
        logging.getLogger("urllib3").setLevel(logging.INFO)
        logging.getLogger("google.auth").setLevel(logging.INFO)
