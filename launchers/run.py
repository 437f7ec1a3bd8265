import argparse
import sys
from pathlib import Path
import os
os.environ['PYGAME_HIDE_SUPPORT_PROMPT'] = "hide"

# Ensure repo root is on sys.path
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from trainer.api.errors import ConfigError
from trainer.app.loader import load_config
from trainer.log import configure_logging, get_logger

log = get_logger("launcher")


def _size(text: str):
    w, h = map(int, text.lower().split("x"))
    return (w, h)


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Laser Trainer")
    parser.add_argument("--profile", default="default", help="Profile name under profiles/ or a YAML path")
    parser.add_argument("--shots", type=int, help="Shots per game (overrides the profile)")
    parser.add_argument("--mode", choices=("manual", "auto"), help="Calibration mode")
    parser.add_argument("--cam-index", type=int, help="OpenCV camera index")
    parser.add_argument("--display", type=_size, help="Window size WxH, e.g. 960x720")
    parser.add_argument("--no-sound", action="store_true", help="Disable beeps")
    parser.add_argument("--no-squares", action="store_true", help="Disable the square fallback in auto mode")
    parser.add_argument("--debug", action="store_true", help="Right-click injects a synthetic shot")
    parser.add_argument("--log-level", default="INFO", help="DEBUG, INFO, WARNING, ...")
    args = parser.parse_args(argv)

    configure_logging(args.log_level)
    try:
        cfg = load_config(
            args.profile,
            shots_goal=args.shots,
            calib_mode=args.mode,
            cam_index=args.cam_index,
            display_size=args.display,
            sound=False if args.no_sound else None,
            square_fallback=False if args.no_squares else None,
        )
    except ConfigError as exc:
        log.error("bad configuration: %s", exc)
        return 2

    # pygame / camera only needed past this point
    from trainer.app.loop import run_trainer
    return run_trainer(cfg, debug=args.debug)


if __name__ == "__main__":
    sys.exit(main())
