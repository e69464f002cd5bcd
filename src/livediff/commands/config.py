import msgspec

from livediff.config import get_config_file, load_settings


def show_config(json_output: bool) -> None:
    settings = load_settings()

    if json_output:
        print(msgspec.json.encode(settings, enc_hook=str).decode())
        return

    print(f"Config file: {get_config_file()}")
    print(f"Workspace root: {settings.workspace_root}")
    print(f"Small change threshold: {settings.small_change_threshold} lines")
    print(f"Animation step delay: {settings.animation_step_delay}s")
    print(f"Reported severities: {', '.join(s.value for s in settings.severity_filter)}")
