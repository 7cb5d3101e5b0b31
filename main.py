# main.py
"""
Main entry point for the Digital Bloom animation.

This script orchestrates the entire animation lifecycle:
1. Loads configuration from `config.json`.
2. Initializes the logging system.
3. Sets up the audio and microphone collaborators, the window and the simulation.
4. Runs the main frame loop.
5. Handles clean shutdown.
"""
import logging
from utils import setup_logging, load_config
import numpy as np
import cProfile
import pstats
import io


def build_audio(audio_params: dict):
    """Creates the audio and microphone collaborators described by the config."""
    from audio import AudioEngine, Microphone, PygameAudio, SoundDeviceMicrophone

    if audio_params.get('enabled', True):
        audio = PygameAudio(
            asset_dir=audio_params.get('asset_dir', 'assets'),
            music_volume=audio_params.get('music_volume', 0.5),
        )
    else:
        logging.info("Audio disabled in configuration.")
        audio = AudioEngine()

    if audio_params.get('microphone', True):
        microphone = SoundDeviceMicrophone()
        microphone.start()
    else:
        logging.info("Microphone disabled in configuration.")
        microphone = Microphone()

    return audio, microphone


def main():
    """
    The main function to run the animation.
    """
    # Load configuration from the JSON file first.
    # Logging is not set up yet, so we use a print for this one error.
    try:
        config = load_config('config.json')
    except Exception as e:
        print(f"FATAL: Could not load config.json. Error: {e}")
        return

    # Set up the logging system based on the loaded configuration.
    setup_logging(config)

    logging.info("--- Digital Bloom Starting ---")

    sim_params = config['simulation_parameters']
    run_params = config['run_control']
    vis_params = config['visualization']
    audio_params = config['audio']

    from simulation import Simulation
    from visualization import Visualizer

    # --- Component Initialization ---
    # 1. Audio first, so the mixer is ready before the window opens.
    audio, microphone = build_audio(audio_params)

    # 2. The visualizer determines the canvas dimensions.
    visualizer = Visualizer(vis_params)

    # 3. The simulation runs on the visualizer's canvas.
    sim = Simulation(sim_params, visualizer.width, visualizer.height, audio=audio, microphone=microphone)

    profiler = cProfile.Profile() if run_params.get('profile', False) else None

    log_throttle = run_params.get('log_throttle_steps', 300)
    max_steps = run_params.get('max_steps', 0)  # 0 runs until the window is closed

    running = True
    step_num = 0

    if profiler:
        profiler.enable()
    while running:
        sim.step()
        step_num += 1

        # The visualizer's draw method handles input and returns False
        # once the user quits.
        if not visualizer.draw(sim):
            running = False

        # Rule 2.4: Hot loops must throttle logs
        if step_num % log_throttle == 0:
            ctx = sim.context
            logging.info(
                f"Step {step_num} | mode {ctx.mode.label} | stage {ctx.timeline.label} "
                f"| phase {ctx.phase:.2f}"
            )
            if sim.last_result is not None:
                logging.debug(
                    f"Step {step_num} | Mean force: {np.mean(sim.last_result.forces):.4f} "
                    f"| Black hole: {ctx.black_hole!r} | Sound level: {ctx.sound_level:.3f}"
                )

        if max_steps and step_num >= max_steps:
            logging.info(f"Reached max_steps ({max_steps}). Stopping animation.")
            running = False
    if profiler:
        profiler.disable()

    visualizer.close()
    microphone.close()
    audio.close()
    logging.info("Frame loop finished.")

    if profiler:
        logging.info("--- Performance Profile ---")
        s = io.StringIO()
        # Sort by cumulative time spent in the function
        stats = pstats.Stats(profiler, stream=s).sort_stats('cumtime')
        stats.print_stats(20)  # Print top 20 slowest functions
        logging.info(f"\n{s.getvalue()}")

    logging.info("--- Digital Bloom Shutting Down ---")


if __name__ == "__main__":
    main()
