from setuptools import setup, find_packages

setup(
    name="pastelaria",
    version="1.0.0",
    packages=find_packages(include=["pastelaria", "pastelaria.*"]),
    install_requires=[
        "django>=4.2",
        "django-cors-headers",
        "djangorestframework",
        "drf-spectacular",
        "python-decouple",
        "requests",
    ],
    extras_require={
        "test": [
            "pytest",
            "pytest-django",
        ],
    },
    python_requires=">=3.11",
)
