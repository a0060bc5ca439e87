import logging
import time

from audio.engine import AudioEngine
from instruments.config import PianoConfig
from instruments.piano import PianoPlayer

SR = 44100
BLOCK = 256
SOUNDS = "piano_sounds/"   # 1.mp3 (A0) ... 88.mp3 (C8)

if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="[%(name)s] %(message)s")

    engine = AudioEngine(sr=SR, blocksize=BLOCK, channels=2, pre_gain=0.8, limiter_drive=1.15)
    piano = PianoPlayer(engine, config=PianoConfig(sounds_path=SOUNDS))

    if not piano.init(on_error=lambda e: print(f"Could not load samples: {e}")):
        raise SystemExit(1)

    engine.start()
    try:
        # C major scale, 0.4 s per note
        for name in ["C4", "D4", "E4", "F4", "G4", "A4", "B4", "C5"]:
            piano.play_by_name(name, duration=0.4)
            time.sleep(0.4)

        # I - IV - V - I, cut each chord short by hand
        for chord in ([48, 60, 64, 67], [53, 60, 65, 69], [55, 59, 62, 67], [48, 60, 64, 72]):
            stop = piano.play_chord(chord)
            time.sleep(0.9)
            stop()

        piano.play_pitch(21)    # lowest key, rings to the end of the sample
        piano.play_pitch(108)
        time.sleep(2.0)
        piano.stop_all()
        time.sleep(0.2)
    except KeyboardInterrupt:
        piano.stop_all()
    finally:
        engine.stop()
