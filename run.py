from __future__ import annotations
import os
from stagepass import create_app


def main() -> None:
    stagepass_app = create_app()

    # public fan routes first, then the /artist management surface
    rules = sorted(stagepass_app.url_map.iter_rules(), key=lambda rule: (rule.rule.startswith("/artist"), rule.rule))
    print("\n=== StagePass endpoints ===")
    for rule in rules:
        methods = ",".join(sorted(rule.methods - {"HEAD", "OPTIONS"}))
        print(f"{methods:<14} {rule.rule}")
    print("===========================\n")

    debug_enabled = os.environ.get("FLASK_DEBUG", "0") in {"1", "true", "True"}
    stagepass_app.run(
        host=os.environ.get("HOST", "0.0.0.0"),
        port=int(os.environ.get("PORT", 5000)),
        debug=debug_enabled,
    )


if __name__ == "__main__":
    main()
