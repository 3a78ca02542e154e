"""
Pytest configuration and shared fixtures.
"""

from typing import Callable

import pytest


def build_file_diff(path: str, added: int = 1, removed: int = 0) -> str:
    """Build a well-formed single-file modification diff."""
    lines = [
        f"diff --git a/{path} b/{path}",
        "index 1111111..2222222 100644",
        f"--- a/{path}",
        f"+++ b/{path}",
        f"@@ -1,{removed + 1} +1,{added + 1} @@",
        " unchanged",
    ]
    lines.extend(f"-old line {i}" for i in range(removed))
    lines.extend(f"+new line {i}" for i in range(added))
    return "\n".join(lines) + "\n"


@pytest.fixture(scope="session")
def anyio_backend() -> str:
    """Run AnyIO-marked tests on asyncio; the engine uses asyncio primitives directly."""
    return "asyncio"


@pytest.fixture
def make_diff() -> Callable[[int], str]:
    """Factory for a diff touching ``count`` files named src/file_<i>.py."""
    def factory(count: int, added: int = 1, removed: int = 0) -> str:
        return "".join(
            build_file_diff(f"src/file_{i}.py", added=added, removed=removed)
            for i in range(count)
        )
    return factory


@pytest.fixture
def simple_diff_content() -> str:
    """A simple diff for testing."""
    return """diff --git a/services/user_service.py b/services/user_service.py
index 1234567..abcdefg 100644
--- a/services/user_service.py
+++ b/services/user_service.py
@@ -10,6 +10,10 @@ def get_user(user_id: int) -> User:
     user = db.query(User).filter(User.id == user_id).first()
     return user

+def get_user_by_email(email: str) -> User:
+    user = db.query(User).filter(User.email == email).first()
+    return user
+
 def create_user(user_data: UserCreate) -> User:
     user = User(**user_data.dict())
     db.add(user)
"""


@pytest.fixture
def multi_file_diff_content() -> str:
    """A diff with a modification, a new file, a deletion, a rename and a binary file."""
    # Context lines start with exactly one space: the diff marker
    lines = [
        "diff --git a/src/app.ts b/src/app.ts",
        "index 1111111..2222222 100644",
        "--- a/src/app.ts",
        "+++ b/src/app.ts",
        "@@ -1,3 +1,3 @@",
        " import { run } from './run';",
        "-run(1);",
        "+run(2);",
        " export {};",
        "diff --git a/new.py b/new.py",
        "new file mode 100644",
        "index 0000000..3333333",
        "--- /dev/null",
        "+++ b/new.py",
        "@@ -0,0 +1,3 @@",
        "+def main():",
        "+    return 1",
        "+",
        "diff --git a/old.go b/old.go",
        "deleted file mode 100644",
        "index 4444444..0000000",
        "--- a/old.go",
        "+++ /dev/null",
        "@@ -1,2 +0,0 @@",
        "-package old",
        "-func f() {}",
        "diff --git a/docs/a.md b/docs/b.md",
        "similarity index 90%",
        "rename from docs/a.md",
        "rename to docs/b.md",
        "index 5555555..6666666 100644",
        "--- a/docs/a.md",
        "+++ b/docs/b.md",
        "@@ -1,2 +1,2 @@",
        " # Title",
        "-old text",
        "+new text",
        "diff --git a/logo.png b/logo.png",
        "index 7777777..8888888 100644",
        "Binary files a/logo.png and b/logo.png differ",
    ]
    return "\n".join(lines) + "\n"


@pytest.fixture
def truncated_diff_content(simple_diff_content: str) -> str:
    """Two files, the last one cut off in the middle of its hunk."""
    return simple_diff_content + "\n".join([
        "diff --git a/models/user.py b/models/user.py",
        "index 1111111..2222222 100644",
        "--- a/models/user.py",
        "+++ b/models/user.py",
        "@@ -5,6 +5,8 @@ class User(BaseModel):",
        "     id: int",
        "+    is_active: bool = True",
    ]) + "\n"
