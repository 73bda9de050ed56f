"""
setup.py

docx-stream - incremental extraction of typed content elements from Word .docx documents

Copyright 2026 The docx-stream Authors

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at

    http://www.apache.org/licenses/LICENSE-2.0

Unless required by applicable law or agreed to in writing, software
distributed under the License is distributed on an "AS IS" BASIS,
WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
See the License for the specific language governing permissions and
limitations under the License.
"""

import re
from typing import List, Optional, Union

from setuptools import find_packages, setup


def get_version() -> str:
    # -- parsed rather than imported, `docx_stream` needs its dependencies installed to import --
    with open("docx_stream/__version__.py", encoding="utf-8") as f:
        match = re.search(r'^__version__ = "([^"]+)"', f.read(), re.MULTILINE)
    if match is None:
        raise RuntimeError("no __version__ found in docx_stream/__version__.py")
    return match.group(1)


def load_requirements(file_list: Optional[Union[str, List[str]]] = None) -> List[str]:
    if file_list is None:
        file_list = ["requirements/base.in"]
    if isinstance(file_list, str):
        file_list = [file_list]
    requirements: List[str] = []
    for file in file_list:
        with open(file, encoding="utf-8") as f:
            requirements.extend(f.readlines())
    requirements = [
        req.strip()
        for req in requirements
        if req.strip() and not req.startswith("#") and not req.startswith("-")
    ]
    return requirements


setup(
    name="docx-stream",
    description="Streams typed content elements out of Microsoft Word .docx documents.",
    long_description=open("README.md", encoding="utf-8").read(),  # noqa: SIM115
    long_description_content_type="text/markdown",
    keywords="DOCX Word OOXML parsing extraction",
    license="Apache-2.0",
    python_requires=">=3.10.0",
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Text Processing :: Markup :: XML",
    ],
    packages=find_packages(include=["docx_stream", "docx_stream.*"]),
    version=get_version(),
    install_requires=load_requirements(),
    extras_require={
        "test": load_requirements("requirements/test.in"),
    },
    package_dir={"docx_stream": "docx_stream"},
)
