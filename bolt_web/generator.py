"""Canned replies and mock project files for the chat endpoint.

Nothing here talks to a model: the reply text is picked from a fixed list and
the files are small templates with the user's message pasted in verbatim.
The message is deliberately not escaped, so consumers have to cope with quotes,
newlines and markup inside the generated files.
"""
from __future__ import annotations

import random
from typing import Callable, Dict, NamedTuple, Sequence

CANNED_RESPONSES = (
    "I'll help you create that! Let me generate the code for you.",
    "Great idea! I'll build a React component with that functionality.",
    "I'll create a new file with the requested features.",
    "Let me add those dependencies and implement the functionality.",
    "I'll update the code to include your requested changes.",
)

REACT_KEYWORD = "react"

_REACT_APP_TEMPLATE = """import React from 'react';

function App() {
  return (
    <div className="App">
      <h1>Hello from React!</h1>
      <p>Generated based on your request: "%(message)s"</p>
    </div>
  );
}

export default App;"""

_REACT_PACKAGE_TEMPLATE = """{
  "name": "my-react-app",
  "version": "1.0.0",
  "description": "%(message)s",
  "dependencies": {
    "react": "^18.2.0",
    "react-dom": "^18.2.0"
  }
}"""

_HTML_TEMPLATE = """<!DOCTYPE html>
<html>
<head>
  <title>Generated Project</title>
</head>
<body>
  <h1>Project based on: "%(message)s"</h1>
  <p>This is a demo file generated by Bolt.new example.</p>
</body>
</html>"""

Selector = Callable[[Sequence[str]], str]


class Generation(NamedTuple):
    response: str
    files: Dict[str, str]


def generate_files(message: str) -> Dict[str, str]:
    """Return the mock file set matching ``message``."""

    values = {"message": message}
    if REACT_KEYWORD in message.lower():
        return {
            "App.js": _REACT_APP_TEMPLATE % values,
            "package.json": _REACT_PACKAGE_TEMPLATE % values,
        }
    return {"index.html": _HTML_TEMPLATE % values}


class ResponseGenerator:
    """Pair a canned acknowledgement with the generated files.

    ``selector`` picks one entry from ``responses``; tests pass a
    deterministic one instead of :func:`random.choice`.
    """

    def __init__(
        self,
        selector: Selector = random.choice,
        responses: Sequence[str] = CANNED_RESPONSES,
    ) -> None:
        if not responses:
            raise ValueError("At least one canned response is required.")
        self.selector = selector
        self.responses = tuple(responses)

    def generate(self, message: str) -> Generation:
        return Generation(self.selector(self.responses), generate_files(message))


_default_generator = ResponseGenerator()


def generate(message: str) -> Generation:
    return _default_generator.generate(message)
