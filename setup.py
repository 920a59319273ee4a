from setuptools import setup


setup(
    name="attendance-sheet",
    version="0.1.0",
    description="Bulk attendance spreadsheet templates and upload parsing for HR attendance services",
    packages=["attendance_sheet"],
    python_requires=">=3.9",
    install_requires=[
        "pandas>=2.0",
        "chardet",
        "openpyxl",
        "requests",
    ],
    extras_require={
        "excel-legacy": ["xlrd"],
        "ods": ["odfpy"],
        "all": ["xlrd", "odfpy"],
        "test": ["pytest"],
    },
    entry_points={
        "console_scripts": [
            "attendance-sheet=attendance_sheet.cli:main",
        ]
    },
)
