from setuptools import setup, find_packages

# Read long description from README
with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

setup(
    name="subkit",
    version="0.1.0",
    author="SubKit Contributors",
    description="Subtitle ingestion toolkit: charset detection, format sniffing and cue decoding",
    long_description=long_description,
    long_description_content_type="text/markdown",
    url="https://github.com/subkit/subkit",
    packages=find_packages(exclude=["tests", "tests.*", "examples", "examples.*"]),
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Multimedia :: Video",
        "Topic :: Software Development :: Libraries :: Python Modules",
    ],
    python_requires=">=3.8",
    install_requires=[
        "charset-normalizer>=3.0.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "pytest-cov>=4.0.0",
            "black>=23.0.0",
            "flake8>=6.0.0",
            "mypy>=1.0.0",
        ],
    },
    include_package_data=True,
    keywords="subtitles captions webvtt srt ssa ass ttml pgs dvb charset",
    project_urls={
        "Bug Reports": "https://github.com/subkit/subkit/issues",
        "Source": "https://github.com/subkit/subkit",
        "Documentation": "https://github.com/subkit/subkit#readme",
    },
)
