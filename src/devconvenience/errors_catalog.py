"""Actionable error catalog for developer convenience commands."""

from typing import Dict

_ERROR_MESSAGES: Dict[str, Dict[str, str]] = {
    "manifest_not_found": {
        "what": "Deployment manifest not found: {path}",
        "next": "Run the command from the project root or pass `--project-dir`.",
    },
    "environment_not_found": {
        "what": "Environment '{environment}' not found in {path}.",
        "next": "Use one of the environments defined under `magephp.environments`: {available}.",
    },
    "environment_key_missing": {
        "what": "Environment '{environment}' is missing the `{key}` setting.",
        "next": "Add `{key}` to the environment in the deployment manifest.",
    },
    "database_config_not_found": {
        "what": "No database configuration found for environment '{environment}'.",
        "next": "Provide one of: {candidates}.",
    },
    "database_key_missing": {
        "what": "Database setting `{key}` is missing in {path}.",
        "next": "Add `{key}` for environment '{environment}' and try again.",
    },
    "imagemin_not_found": {
        "what": "Imagemin node modules not found in {path}.",
        "next": (
            "Run `npm install imagemin imagemin-mozjpeg imagemin-pngquant` in the project root."
        ),
    },
}


def actionable_error(code: str, **kwargs: str) -> str:
    if code not in _ERROR_MESSAGES:
        raise KeyError(f"Unknown error catalog key: {code}")

    template = _ERROR_MESSAGES[code]
    what = template["what"].format(**kwargs)
    next_step = template["next"].format(**kwargs)
    return f"{what} Suggested action: {next_step}"
