[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "navier"
version = "0.2.0"
description = "Bathroom and toilet room controller logic: water meter, leak protection, ventilation, lighting and Home Assistant MQTT integration"
requires-python = ">=3.10"
dependencies = []
keywords = [
    "home-automation",
    "home-assistant",
    "mqtt",
    "water-meter",
    "leak-detection",
    "lighting",
    "ventilation",
]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Home Automation",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["navier"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true
