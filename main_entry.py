import multiprocessing

from repograph.cli import cli

if __name__ == "__main__":
    # Needed for PyInstaller/Nuitka onefile builds
    multiprocessing.freeze_support()

    cli()
