import datetime
import os
import shutil
import sys
import time
import traceback
from colorama import Fore, Style, init

# Initialize Colorama
init(autoreset=True)

LOG_DIR = os.environ.get("PKGSMITH_LOG_DIR") or os.path.join(os.path.expanduser("~"), ".pkgsmith", "logs")


class Logger:
    def __init__(self, log_dir=LOG_DIR):
        self.log_dir = log_dir
        self.log_file = os.path.join(
            log_dir,
            f"pkgsmith_{datetime.datetime.now().strftime('%Y%m%d_%H%M%S')}.log"
        )

    def _get_timestamp(self):
        return datetime.datetime.now().strftime("%H:%M:%S")

    def _write(self, log_message):
        try:
            os.makedirs(self.log_dir, exist_ok=True)
            with open(self.log_file, "a") as f:
                f.write(log_message)
        except OSError:
            # log file is best-effort
            pass

    def _log(self, level, message, color, stream=sys.stdout, prefix="", show_timestamp=True):
        if show_timestamp:
            timestamp = self._get_timestamp()
            log_message = f"[{timestamp}] [{level}] {message}\n"
            print(f"{color}{Style.BRIGHT}[{timestamp}]{Style.RESET_ALL} {prefix}{message}{Style.RESET_ALL}", file=stream)
        else:
            log_message = f"[{level}] {message}\n"
            print(f"{color}{prefix}{message}{Style.RESET_ALL}", file=stream)
        self._write(log_message)

    def info(self, message):
        self._log("INFO", message, Fore.CYAN)

    def step_info(self, message, indent=0):
        self._log("STEP", message, Fore.CYAN, prefix=" " * indent, show_timestamp=False)

    def success(self, message):
        self._log("SUCCESS", message, Fore.GREEN, prefix=f"{Style.BRIGHT}✓ {Style.RESET_ALL}{Fore.GREEN}")

    def warning(self, message):
        self._log("WARNING", message, Fore.YELLOW, stream=sys.stderr,
                  prefix=f"{Style.BRIGHT}⚠ {Style.RESET_ALL}{Fore.YELLOW}")

    def error(self, message):
        self._log("ERROR", message, Fore.RED, stream=sys.stderr,
                  prefix=f"{Style.BRIGHT}✖ {Style.RESET_ALL}{Fore.RED}")

    def debug(self, message):
        self._log("DEBUG", message, Fore.WHITE + Style.DIM)

    # -------- Progress bar method --------
    def progress(self, iterable, description="Downloading", total=None, bar_length=30):
        """Yield byte chunks from ``iterable`` while drawing a download bar.

        Without a known ``total`` (no content-length) the chunks are passed
        through untouched.
        """
        if not total:
            for chunk in iterable:
                yield chunk
            return

        start_time = time.time()
        received = 0

        def format_size(bytes_val):
            if bytes_val >= 1024 * 1024 * 1024:
                return f"{bytes_val / (1024*1024*1024):.1f} GB"
            if bytes_val >= 1024 * 1024:
                return f"{bytes_val / (1024*1024):.1f} MB"
            if bytes_val >= 1024:
                return f"{bytes_val / 1024:.1f} KB"
            return f"{int(bytes_val)} B"

        print(f"{description}...")
        sys.stdout.flush()

        line = ""
        for chunk in iterable:
            yield chunk
            received += len(chunk)

            elapsed = time.time() - start_time
            percent = min(1.0, received / total)
            filled_len = int(bar_length * percent)

            bar = Fore.GREEN + "━" * filled_len
            if filled_len < bar_length:
                bar += Fore.RED + "╺" + Style.RESET_ALL + "━" * (bar_length - filled_len - 1)
            else:
                bar += Style.RESET_ALL

            speed = received / elapsed if elapsed > 0 else 0
            eta = (total - received) / speed if speed > 0 else 0

            line = (
                f"{percent*100:3.0f}% | "
                f"{bar} | "
                f"{format_size(received)}/{format_size(total)} • "
                f"{speed/(1024*1024):.1f} MB/s • "
                f"{time.strftime('%M:%S', time.gmtime(elapsed))}/"
                f"{time.strftime('%M:%S', time.gmtime(elapsed+eta))}"
            )
            width = shutil.get_terminal_size().columns
            sys.stdout.write("\r" + (line if len(line) <= width else line[:width]))
            sys.stdout.flush()

        if line:
            print()
        self._write(f"[INFO] {description}: {format_size(received)} received\n")

    # -------- Exception logging --------
    def exception(self, exc_type, exc_value, exc_traceback):
        self.error(f"An unhandled exception occurred: {exc_value}")
        formatted_lines = traceback.format_exception(exc_type, exc_value, exc_traceback)
        for line in formatted_lines:
            for sub_line in line.splitlines():
                if sub_line.strip():
                    self._log("TRACEBACK", f">> {sub_line}", Fore.RED, stream=sys.stderr)


# ---------------- Helper ----------------
logger = Logger()

