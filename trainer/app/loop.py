from __future__ import annotations
import time
from typing import List, Optional

import pygame

from trainer.api.config import TrainerConfig
from trainer.api.frame_data import HitEvent, Point2D
from trainer.app.countdown import Countdown, CountdownPhase
from trainer.app.game_loop import GameLoop
from trainer.audio.beeps import Sounds
from trainer.calib.auto import ArucoMarkerDetector, AutoFiducialCalibration
from trainer.calib.homography import HomographyCell, HomographyStore
from trainer.calib.manual import ManualCornerCalibration
from trainer.calib.state import CalibrationState
from trainer.input.tap_input import TapInput
from trainer.log import get_logger
from trainer.render.shapes import (
    cv2_to_pygame_surface,
    draw_calibration_overlay,
    draw_hits,
    draw_taps,
    draw_text,
)
from trainer.score.engine import Target
from trainer.video.camera import Camera

log = get_logger("app")

CALIB_TICK = pygame.USEREVENT + 1

HUD_COLOR = (240, 240, 240)
WARN_COLOR = (255, 170, 60)
COUNTDOWN_COLORS = {
    CountdownPhase.Standby: (100, 180, 255),
    CountdownPhase.Armed: (255, 80, 80),
    CountdownPhase.Go: (50, 220, 80),
}


def run_trainer(cfg: TrainerConfig, debug: bool = False) -> int:
    pygame.init()
    pygame.display.set_caption(
        "Laser Trainer (C calibrate, Space start, S stop, R reset view, M sound, Esc quit)")
    screen = pygame.display.set_mode(cfg.display_size)
    clock = pygame.time.Clock()

    cam = Camera(cfg.cam_index, cfg.cam_size, cfg.proc_size, fps=60)
    if not cam.open():
        pygame.quit()
        return 1

    cell = HomographyCell()
    target = Target.from_config(cfg)
    game = GameLoop(cfg, cell)
    sounds = Sounds(cfg.sound)
    taps = TapInput(debug=debug)

    dw, dh = cfg.display_size
    pw, ph = cfg.proc_size
    view_scale = (dw / float(pw), dh / float(ph))
    to_proc = cfg.display_to_proc_scale

    manual: Optional[ManualCornerCalibration] = None
    auto: Optional[AutoFiducialCalibration] = None
    if cfg.calib_mode == "manual":
        store = HomographyStore(profile_name=cfg.profile, root=cfg.calib_dir)
        manual = ManualCornerCalibration(cell, cfg.target_size, to_proc, store=store)
        if manual.restore():
            log.info("restored calibration from %s", store.path)
    else:
        auto = AutoFiducialCalibration(
            cell, cfg.target_size,
            square_fallback=cfg.square_fallback,
            stale_after_s=cfg.calib_stale_ms / 1000.0,
            stale_ticks=cfg.calib_stale_ticks,
            marker_detector=ArucoMarkerDetector(cfg.aruco_dict),
        )
        auto.recalibrate()
        pygame.time.set_timer(CALIB_TICK, cfg.calib_tick_ms)

    countdown: Optional[Countdown] = None
    view_hits: List[HitEvent] = []
    banner: Optional[str] = None

    running = True
    try:
        while running:
            clock.tick(60)
            now = time.monotonic()

            for event in pygame.event.get():
                if event.type == pygame.QUIT:
                    running = False
                elif event.type == CALIB_TICK and auto is not None:
                    if cam.latest is not None:
                        auto.tick(cam.latest, time.monotonic())
                elif event.type == pygame.KEYDOWN:
                    if event.key == pygame.K_ESCAPE:
                        running = False
                    elif event.key == pygame.K_c:
                        if manual is not None:
                            manual.begin()
                        else:
                            auto.recalibrate()
                    elif event.key in (pygame.K_SPACE, pygame.K_RETURN):
                        if countdown is None and not game.scorer.running:
                            countdown = Countdown(cfg.countdown_sec, now)
                            view_hits.clear()
                            banner = None
                    elif event.key == pygame.K_s:
                        countdown = None
                        game.stop_session()
                        banner = "Stopped by user."
                    elif event.key == pygame.K_r:
                        view_hits.clear()
                        banner = None
                    elif event.key == pygame.K_m:
                        sounds.set_enabled(not sounds.enabled)
                taps.handle_pygame_event(event)

            if manual is not None:
                for (x, y) in taps.take_taps():
                    manual.add_tap(x, y)
            else:
                taps.take_taps()

            frame = cam.grab()
            if frame is None:
                continue

            if countdown is not None:
                phase, _, beep = countdown.update(now)
                if beep:
                    sounds.beep()
                if phase == CountdownPhase.Done:
                    countdown = None
                    game.start_session(cfg.shots_goal)

            results = [game.step(frame, now)]
            for (x, y) in taps.take_shots():
                results.append(game.inject(Point2D(x * to_proc[0], y * to_proc[1]), now))
            for result in results:
                if result.hit is not None:
                    sounds.steel()
                    view_hits.append(result.hit)
                if result.summary is not None:
                    s = result.summary
                    banner = f"Game finished. Total: {s.total}  Avg: {s.avg:.1f}"

            # ---- draw ----
            screen.blit(cv2_to_pygame_surface(frame, cfg.display_size), (0, 0))
            cal = cell.current
            if cal is not None:
                draw_calibration_overlay(screen, cal.homography, target, cfg.target_size, view_scale)
            if manual is not None and manual.state == CalibrationState.Calibrating:
                draw_taps(screen, manual.taps, view_scale)
            draw_hits(screen, view_hits, view_scale)

            calib_status = manual.status() if manual is not None else auto.status()
            stale = auto is not None and (auto.stale or auto.state == CalibrationState.Reacquiring)
            draw_text(screen, calib_status, (16, 16), WARN_COLOR if stale else HUD_COLOR, 26)
            draw_text(screen, game.status(), (16, 44), HUD_COLOR, 26)
            st = game.stats
            last = "-" if st.last_score is None else str(st.last_score)
            draw_text(screen,
                      f"Last: {last}   Shots: {st.shots_fired}/{game.scorer.shots_goal}   "
                      f"Total: {st.total_score}   Avg: {st.avg_score:.1f}",
                      (16, dh - 36), HUD_COLOR, 28)
            if countdown is not None:
                phase, text = countdown.phase_at(now)
                if phase != CountdownPhase.Done:
                    color = COUNTDOWN_COLORS[phase]
                    draw_text(screen, text, (dw // 2 - 40, dh // 2 - 80), color, 160)
                    draw_text(screen, phase.value, (dw // 2 - 60, dh // 2 + 40), color, 40)
            if banner:
                draw_text(screen, banner, (16, 72), (255, 255, 0), 30)

            pygame.display.flip()
    finally:
        pygame.time.set_timer(CALIB_TICK, 0)
        cam.close()
        pygame.quit()
    return 0
