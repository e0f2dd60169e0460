from __future__ import annotations

import os
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
for path in (REPO_ROOT, REPO_ROOT / "src" / "office_admin"):
    if str(path) not in sys.path:
        sys.path.insert(0, str(path))

from office_admin.main import create_app


def main() -> None:
    app = create_app()
    app.run(
        host=os.getenv("HOST", "127.0.0.1"),
        port=int(os.getenv("PORT", "5000")),
        debug=bool(app.config.get("DEBUG", False)),
    )


if __name__ == "__main__":
    main()
