from setuptools import setup, find_packages

setup(
    name="safecount",
    version="0.1.0",
    packages=find_packages(include=["safecount", "safecount.*"]),
    install_requires=[
        "flask",
        "werkzeug",
        "prometheus_client",
        "python-json-logger",
        "requests",
    ],
    extras_require={
        "test": ["pytest"],
    },
    python_requires=">=3.8",
)
