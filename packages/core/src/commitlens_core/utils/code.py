import fnmatch
import posixpath

BINARY_MARKER = "[binary content]"

# Rejected outright by the file validator.
DENIED_EXTENSIONS = {
    ".exe",
    ".dll",
    ".bin",
    ".obj",
    ".pdb",
    ".jpg",
    ".jpeg",
    ".png",
    ".gif",
    ".bmp",
    ".ico",
    ".zip",
    ".rar",
    ".7z",
    ".tar",
    ".gz",
    ".pdf",
    ".doc",
    ".docx",
    ".xls",
    ".xlsx",
    ".ppt",
    ".pptx",
    ".mp3",
    ".mp4",
    ".avi",
    ".mov",
    ".wav",
}

# Skipped by the diff extractor before any blob is read.
BINARY_EXTENSIONS = DENIED_EXTENSIONS | {
    ".so",
    ".dylib",
    ".o",
    ".a",
    ".lib",
    ".bz2",
    ".xz",
    ".cab",
    ".jar",
    ".war",
    ".ear",
    ".tiff",
    ".webp",
    ".psd",
    ".ai",
    ".mkv",
    ".flac",
    ".ogg",
    ".webm",
    ".m4a",
    ".m4v",
    ".odt",
    ".ods",
    ".odp",
    ".dat",
    ".db",
    ".sqlite",
    ".mdb",
    ".accdb",
    ".class",
    ".pyc",
    ".mo",
    ".deb",
    ".rpm",
    ".woff",
    ".woff2",
    ".ttf",
    ".eot",
    ".otf",
}

SOURCE_LANGUAGES = {
    ".cs": "C#",
    ".java": "Java",
    ".js": "JavaScript",
    ".jsx": "JavaScript",
    ".ts": "TypeScript",
    ".tsx": "TypeScript",
    ".py": "Python",
    ".rb": "Ruby",
    ".php": "PHP",
    ".go": "Go",
    ".c": "C",
    ".cpp": "C++",
    ".cc": "C++",
    ".h": "C/C++",
    ".hpp": "C++",
    ".swift": "Swift",
    ".kt": "Kotlin",
    ".rs": "Rust",
    ".scala": "Scala",
    ".sh": "Shell",
    ".pl": "Perl",
    ".sql": "SQL",
}

IGNORED_DIRECTORIES = {
    "bin",
    "obj",
    "node_modules",
    "build",
    "dist",
    "target",
    "vendor",
    "__pycache__",
    ".venv",
    "venv",
    ".git",
}

GENERATED_SUFFIXES = (
    "assemblyinfo.cs",
    ".g.cs",
    ".generated.cs",
    ".designer.cs",
    ".min.js",
)


def extension_of(path: str) -> str:
    return posixpath.splitext(path)[1].lower()


def is_code_file(file_name: str) -> bool:
    return extension_of(file_name) not in BINARY_EXTENSIONS


def is_source_file(file_name: str) -> bool:
    return extension_of(file_name) in SOURCE_LANGUAGES


def detect_language(file_name: str) -> str:
    return SOURCE_LANGUAGES.get(extension_of(file_name), "Unknown")


def is_excluded(filename: str, patterns) -> bool:
    """Return True if filename matches any exclude pattern.

    Supports:
    - fnmatch globs on the full path: "src/generated/*.py"
    - fnmatch globs on the basename: "*.lock", "*.min.js"
    - Directory names/prefixes: "migrations/", "tests" (matches any file within that tree)
    """
    for pattern in patterns:
        if fnmatch.fnmatch(filename, pattern):
            return True
        if fnmatch.fnmatch(filename.rsplit("/", 1)[-1], pattern):
            return True
        prefix = pattern.rstrip("/") + "/"
        if filename.startswith(prefix) or ("/" + prefix) in filename:
            return True
    return False


def should_skip_path(path: str, exclude=()) -> bool:
    """Cheap path-only filter applied before any content is read."""
    parts = path.split("/")
    if any(part in IGNORED_DIRECTORIES for part in parts[:-1]):
        return True
    if parts[-1].lower().endswith(GENERATED_SUFFIXES):
        return True
    if not is_code_file(path):
        return True
    return is_excluded(path, exclude)
