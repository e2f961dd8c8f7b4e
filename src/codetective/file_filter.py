"""Code file recognition and language name mapping."""

from __future__ import annotations

# Mapping of extension → human-readable language name. Anything absent is
# not treated as code anywhere files are discovered.
LANGUAGE_MAP: dict[str, str] = {
    # Synthetic extension for pasted code
    "textbox": "Textbox",
    ".py": "Python",
    ".pyi": "Python",
    ".ipynb": "Jupyter Notebook",
    ".js": "JavaScript",
    ".mjs": "JavaScript",
    ".cjs": "JavaScript",
    ".jsx": "JavaScript JSX",
    ".ts": "TypeScript",
    ".tsx": "TypeScript JSX",
    ".java": "Java",
    ".kt": "Kotlin",
    ".kts": "Kotlin",
    ".scala": "Scala",
    ".groovy": "Groovy",
    ".cs": "C#",
    ".fs": "F#",
    ".vb": "Visual Basic",
    ".go": "Go",
    ".rs": "Rust",
    ".rb": "Ruby",
    ".php": "PHP",
    ".swift": "Swift",
    ".m": "Objective-C",
    ".mm": "Objective-C++",
    ".c": "C",
    ".h": "C Header",
    ".cpp": "C++",
    ".cc": "C++",
    ".cxx": "C++",
    ".hpp": "C++ Header",
    ".hh": "C++ Header",
    ".cu": "CUDA",
    ".zig": "Zig",
    ".nim": "Nim",
    ".d": "D",
    ".sh": "Shell",
    ".bash": "Bash",
    ".zsh": "Zsh",
    ".fish": "Fish",
    ".ps1": "PowerShell",
    ".bat": "Batch",
    ".sql": "SQL",
    ".html": "HTML",
    ".htm": "HTML",
    ".css": "CSS",
    ".scss": "SCSS",
    ".sass": "Sass",
    ".less": "Less",
    ".vue": "Vue",
    ".svelte": "Svelte",
    ".r": "R",
    ".R": "R",
    ".jl": "Julia",
    ".lua": "Lua",
    ".pl": "Perl",
    ".pm": "Perl",
    ".ex": "Elixir",
    ".exs": "Elixir",
    ".erl": "Erlang",
    ".hrl": "Erlang",
    ".hs": "Haskell",
    ".ml": "OCaml",
    ".mli": "OCaml",
    ".clj": "Clojure",
    ".cljs": "ClojureScript",
    ".lisp": "Common Lisp",
    ".el": "Emacs Lisp",
    ".scm": "Scheme",
    ".rkt": "Racket",
    ".dart": "Dart",
    ".sol": "Solidity",
    ".v": "Verilog",
    ".sv": "SystemVerilog",
    ".vhd": "VHDL",
    ".asm": "Assembly",
    ".s": "Assembly",
    ".f90": "Fortran",
    ".pas": "Pascal",
    ".tf": "HCL",
    ".proto": "Protocol Buffers",
    ".graphql": "GraphQL",
    ".cmake": "CMake",
    ".mk": "Makefile",
}

# Display cut-off lengths in tables
PATH_LENGTH_CUTOFF = 36
LANG_LENGTH_CUTOFF = 10


def get_extension(name: str) -> str | None:
    """Return the extension (with leading dot) of the last path segment.

    Returns None when there is no dot or nothing follows it.
    """
    last = name.rsplit("/", maxsplit=1)[-1]
    dot_pos = last.rfind(".")
    if dot_pos == -1 or dot_pos == len(last) - 1:
        return None
    return last[dot_pos:]


def is_code_extension(ext: str | None) -> bool:
    return ext is not None and ext in LANGUAGE_MAP


def is_code_file(path: str) -> bool:
    """Check if a path names a recognized code file by its extension."""
    return is_code_extension(get_extension(path))


def lang_name_of(ext: str | None, cutoff: bool = False) -> str:
    """Return the language display name for an extension, or "-" if unknown.

    With *cutoff* set, long names are shortened for table display.
    """
    if ext is None:
        return "-"
    lang = LANGUAGE_MAP.get(ext, "-")
    if cutoff and len(lang) > LANG_LENGTH_CUTOFF:
        return f"{lang[:LANG_LENGTH_CUTOFF]}..."
    return lang


def path_display(path: str) -> str:
    """Shorten a long path from the left for table display."""
    if len(path) > PATH_LENGTH_CUTOFF:
        return f"...{path[-PATH_LENGTH_CUTOFF:]}"
    return path


def format_file_size(size: int | None) -> str:
    if size is None:
        return "-"
    if size < 1024:
        return f"{size}"
    return f"{size / 1024:.2f} KB"
