"""Streamlit entry point: ``streamlit run report_sync/app.py``."""

import logging

import streamlit as st

from report_sync.rendering import render_report
from report_sync.reports import school_report

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

REPORT_KEY = "school-data"


def main():
    st.set_page_config(page_title="School Data", layout="wide")
    render_report(school_report(), key=REPORT_KEY)


if __name__ == "__main__":
    main()
