import builtins
import sys

from microscript.errors import RuntimeFault


class BasicIO:
    """Line-oriented access to the process's standard streams."""

    def write(self, text: str):
        sys.stdout.write(text)
        sys.stdout.flush()

    def write_line(self, text: str):
        self.write(text + '\n')

    def read_line(self, prompt: str) -> str:
        try:
            return builtins.input(prompt)
        except EOFError:
            raise RuntimeFault('end of input')
