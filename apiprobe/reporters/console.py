import sys

from colorama import init as colorama_init, Fore, Style
from datetime import datetime
colorama_init(autoreset=True)


class Log:
    """Coloured console log; writes to stderr so stdout stays JSON."""

    def __init__(self, verbose: int = 1, stream=None):
        self.verbose = verbose
        self.stream = stream or sys.stderr
        self.PAY = Fore.MAGENTA

    def _time(self):
        return datetime.now().strftime("[%H:%M:%S]")

    def _fmt(self, level: str, color: str):
        return f"{self._time()} {color}[{level}]{Style.RESET_ALL}"

    def _emit(self, line: str):
        print(line, file=self.stream)

    def info(self, msg: str):
        if self.verbose >= 1:
            self._emit(f"{self._fmt('INFO', Fore.CYAN)} {msg}")

    def warn(self, msg: str):
        if self.verbose >= 0:
            self._emit(f"{self._fmt('WARNING', Fore.YELLOW)} {msg}")

    def ok(self, msg: str):
        self._emit(f"{self._fmt('SUCCESS', Fore.GREEN)} {msg}")

    def fail(self, msg: str):
        self._emit(f"{self._fmt('FAIL', Fore.RED)} {msg}")

    def debug(self, msg: str):
        if self.verbose >= 2:
            self._emit(f"{self._fmt('DEBUG', Fore.MAGENTA)} {msg}")

    def finding(self, case: str, url: str, code: int):
        self._emit(f"{self._fmt('FLAGGED', Fore.RED)} {case} accepted by "
                   f"{Fore.MAGENTA}{url}{Style.RESET_ALL} "
                   f"{Style.DIM}(HTTP {code}){Style.RESET_ALL}")

    def summary(self, title: str, fields: dict):
        if self.verbose < 1:
            return
        body = ", ".join(f"{k}={v}" for k, v in fields.items())
        self._emit(f"{self._fmt('DONE', Fore.GREEN)} {title}: {Style.DIM}{body}{Style.RESET_ALL}")
