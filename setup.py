"""Setup script for the Speedrun Timer Overlay project"""

from setuptools import setup

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

setup(
    name="speedrun-timer-overlay",
    version="0.1.0",
    description="Burn RTA / load-removed speedrun timers into videos",
    long_description=long_description,
    long_description_content_type="text/markdown",
    package_dir={"": "src"},
    py_modules=[
        "config",
        "export",
        "frame_clock",
        "load_segments",
        "main",
        "menu",
        "models",
        "overlay_renderer",
        "preview",
        "session",
        "time_calculator",
        "time_formatter",
        "video_source",
    ],
    classifiers=[
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "License :: OSI Approved :: Apache Software License",
        "Operating System :: OS Independent",
        "Development Status :: 3 - Alpha",
        "Intended Audience :: End Users/Desktop",
        "Topic :: Multimedia :: Video",
    ],
    python_requires=">=3.9",
    install_requires=[
        "numpy>=1.21.0",
        "opencv-python>=4.5.0",
        "moviepy>=2.0.0",
        "imageio>=2.9.0",
        "Pillow>=10.1.0",
        "tqdm>=4.62.0",
        "pydantic>=2.0.0",
        "pyyaml>=5.4.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "speedrun-overlay=main:main",
        ],
    },
)
