#!/usr/bin/env python
"""Package version and description for streamexpect."""

from os import path
import sys

from setuptools import setup, find_packages


def parse_requirements(my_path, file_name="requirements.txt"):
    """Parse a requirements file.

    :return: [requirements, dependencies]
    """
    import re

    requirements = []
    dependency_links = []
    with open(path.join(my_path, file_name)) as requirement_lines:
        for line in requirement_lines:
            line = line.strip()
            if not line or line.startswith("-") or line.startswith("#"):
                continue

            m = re.match(".+#egg=(?P<package>.+?)(?:&.+)?$", line)
            if m:
                requirements.append(m.group("package"))
                dependency_links.append(line)
            else:
                requirements.append(line)
    return requirements, dependency_links


directory = path.abspath(path.dirname(__file__))
requirements, dependencies = parse_requirements(directory)
test_requirements, _ = parse_requirements(directory, "requirements-test.txt")

setup(
    name="streamexpect",
    version="0.0.1",
    platforms=sys.platform,
    description="Test expectations for push-based streams",
    long_description=(
        "Expectations that let tests wait until an observable stream emits "
        "a value, finishes or fails."
    ),
    license="GPL-3.0",
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: GNU General Public License v3 (GPLv3)",
        "Natural Language :: English",
        "Programming Language :: Python :: 3",
        "Topic :: Software Development :: Testing",
    ],
    python_requires=">=3.8",
    zip_safe=False,
    keywords="testing observables rx expectations",
    packages=find_packages(include=["streamexpect"]),
    install_requires=requirements,
    extras_require={"test": test_requirements},
    dependency_links=dependencies,
)
