from typing import List, Optional


class PdfShellError(Exception):
    """Base class for errors raised around the external tools."""


class ToolNotFoundError(PdfShellError):
    def __init__(self, tool: str):
        super().__init__(f'{tool} not found. Please install poppler-utils or set the tool path in .env')
        self.tool = tool


class ToolFailedError(PdfShellError):
    def __init__(self, cmd: List[str], returncode: Optional[int], stderr: bytes = b'', message: str = ''):
        self.cmd = list(cmd)
        self.returncode = returncode
        self.stderr = stderr.decode('utf-8', errors='replace').strip() if stderr else ''
        if not message:
            message = f'{self.cmd[0]} exited with status {returncode}'
            if self.stderr:
                message += f': {self.stderr}'
        super().__init__(message)


class MalformedPDFError(ToolFailedError):
    """The tool could not open the input as a PDF document."""


class EncryptedPDFError(ToolFailedError):
    """The PDF is valid but needs a password to open."""


class ToolTimeoutError(PdfShellError):
    def __init__(self, cmd: List[str], timeout: float):
        super().__init__(f'{cmd[0]} timed out after {timeout} seconds')
        self.cmd = list(cmd)
        self.timeout = timeout
