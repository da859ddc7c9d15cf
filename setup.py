"""Setup script for the popup scheduling engine."""

from pathlib import Path

from setuptools import find_packages, setup

# Read the README file
readme_file = Path(__file__).parent / "README.md"
long_description = readme_file.read_text(encoding="utf-8") if readme_file.exists() else ""

# Read requirements; testing tools go to the dev extra
requirements_file = Path(__file__).parent / "requirements.txt"
requirements = []
dev_requirements = []

if requirements_file.exists():
    content = requirements_file.read_text().strip()
    lines = content.split("\n")

    for line in lines:
        line = line.strip()
        # Skip empty lines and comments
        if not line or line.startswith("#"):
            continue

        if "pytest" in line or "testing" in line.lower():
            dev_requirements.append(line)
        else:
            requirements.append(line)

setup(
    name="popup-scheduler",
    version="0.1.0",
    description="Timezone-aware scheduling engine for storefront promotional popups",
    long_description=long_description,
    long_description_content_type="text/markdown",
    author="Popup Scheduler Team",
    # Package configuration
    packages=find_packages(include=["popup_scheduler", "popup_scheduler.*"]),
    include_package_data=True,
    package_data={
        "popup_scheduler": ["data/*.yaml"],
    },
    # Dependencies
    install_requires=requirements,
    extras_require={
        "dev": dev_requirements,
    },
    python_requires=">=3.11",
    classifiers=[
        "Development Status :: 4 - Beta",
        "Environment :: Console",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Office/Business :: Scheduling",
    ],
    keywords="scheduling popup ecommerce recurrence timezone holidays",
    entry_points={
        "console_scripts": [
            "popup-scheduler=popup_scheduler.__main__:main",
        ],
    },
    zip_safe=False,
)
