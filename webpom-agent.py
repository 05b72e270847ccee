#!/usr/bin/env python3
import argparse
import asyncio
import json
import os
import sys
import traceback
from datetime import datetime

import yaml
from dotenv import load_dotenv
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import async_playwright

from webpom_agent.errors import WebPomError
from webpom_agent.executor import AnalysisRunner
from webpom_agent.flows import render_interaction_report
from webpom_agent.utils.get_log import GetLog


def find_config_file(args_config=None):
    """Find the configuration file, explicit path first."""
    if args_config:
        if os.path.isfile(args_config):
            print(f"✅ Using specified config file: {args_config}")
            return args_config
        else:
            raise FileNotFoundError(f"❌ Specified config file not found: {args_config}")

    current_dir = os.getcwd()
    script_dir = os.path.dirname(os.path.abspath(__file__))

    default_paths = [
        os.path.join(current_dir, "config", "config.yaml"),
        os.path.join(script_dir, "config", "config.yaml"),
        os.path.join(current_dir, "config.yaml"),
        os.path.join(script_dir, "config.yaml"),
    ]

    for path in default_paths:
        if os.path.isfile(path):
            print(f"✅ Auto-discovered config file: {path}")
            return path

    print("❌ Config file not found, please check these locations:")
    for path in default_paths:
        print(f"   - {path}")
    raise FileNotFoundError("Config file does not exist")


def load_yaml(path):
    if not os.path.isfile(path):
        print(f"[ERROR] Config file not found: {path}", file=sys.stderr)
        sys.exit(1)
    try:
        with open(path, "r", encoding="utf-8") as f:
            return yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        print(f"[ERROR] Failed to read YAML: {e}", file=sys.stderr)
        sys.exit(1)


async def check_playwright_browsers_async():
    try:
        async with async_playwright() as p:
            browser = await p.chromium.launch(headless=True)
            await browser.close()
        print("✅ Playwright browsers available (Async API startup successful)")
        return True
    except PlaywrightError as e:
        print(f"⚠️ Playwright browsers unavailable (Async API failed): {e}")
        return False


def build_browser_config(cfg):
    # Docker environment detection: force headless mode
    is_docker = os.getenv("DOCKER_ENV") == "true"
    browser_cfg = dict(cfg.get("browser_config") or {})
    if is_docker and not browser_cfg.get("headless", True):
        print("⚠️  Docker environment detected, forcing headless mode")
        browser_cfg["headless"] = True
    return browser_cfg


def build_analysis_options(cfg, args):
    options = dict(cfg.get("analysis") or {})
    if args.no_patterns:
        options["analyze_patterns"] = False
    if args.no_live:
        options["detect_flows"] = False
    return options


def resolve_target_url(cfg, args):
    # Priority: --url > WEBPOM_TARGET_URL > target.url
    return args.url or os.getenv("WEBPOM_TARGET_URL") or (cfg.get("target") or {}).get("url", "")


def write_reports(analysis, output_dir):
    os.makedirs(output_dir, exist_ok=True)
    analysis_path = os.path.join(output_dir, "analysis.json")
    with open(analysis_path, "w", encoding="utf-8") as f:
        json.dump(analysis.to_dict(), f, ensure_ascii=False, indent=2)

    report_path = os.path.join(output_dir, "interaction_report.md")
    with open(report_path, "w", encoding="utf-8") as f:
        f.write(render_interaction_report(analysis.user_flows))
    return analysis_path, report_path


async def run_analysis(cfg, args):
    is_docker = os.getenv("DOCKER_ENV") == "true"
    print(f"🏃 Runtime environment: {'Docker container' if is_docker else 'Local environment'}")

    target_url = resolve_target_url(cfg, args)
    if not target_url:
        print("[ERROR] No target URL: pass --url, set WEBPOM_TARGET_URL or target.url in the config", file=sys.stderr)
        sys.exit(1)

    print("🔍 Checking Playwright browsers...")
    ok = await check_playwright_browsers_async()
    if not ok:
        print("Please manually run: `playwright install chromium` to install browser binaries, then retry.", file=sys.stderr)
        sys.exit(1)

    log_cfg = cfg.get("log") or {}
    GetLog.get_log(level=log_cfg.get("level", "info"))

    report_cfg = cfg.get("report") or {}
    timestamp = os.getenv("WEBPOM_TIMESTAMP") or datetime.now().strftime("%Y-%m-%d_%H-%M-%S")
    output_dir = args.output or os.path.join(report_cfg.get("dir", "./reports"), timestamp)

    runner = AnalysisRunner(
        browser_config=build_browser_config(cfg),
        analysis_config=build_analysis_options(cfg, args),
    )
    try:
        analysis = await runner.analyze(target_url)
    except WebPomError as e:
        print(f"[ERROR] {e}", file=sys.stderr)
        sys.exit(1)
    except Exception:
        print("Analysis failed, stack trace:", file=sys.stderr)
        traceback.print_exc()
        sys.exit(1)

    analysis_path, report_path = write_reports(analysis, output_dir)
    metadata = analysis.metadata
    print(f"📄 Page: {analysis.title} ({analysis.url})")
    print(f"🔢 Elements: {metadata.total_elements} (interactive: {metadata.interactive_elements})")
    print(f"🔢 Test ids: {metadata.test_ids}, Forms: {metadata.forms}, Modals: {metadata.modals}")
    print(f"🔀 User flows: {len(analysis.user_flows)}")
    print(f"🌐 API calls: {len(analysis.api_routes)}")
    print("Analysis path: ", analysis_path)
    print("Interaction report path: ", report_path)


def parse_args():
    parser = argparse.ArgumentParser(description="WebPOM Agent Page Analysis Entry Point")
    parser.add_argument("--config", "-c", help="YAML configuration file path (optional, default auto-search config/config.yaml)")
    parser.add_argument("--url", "-u", help="Page to analyze (overrides target.url)")
    parser.add_argument("--no-patterns", action="store_true", help="Skip pattern based flow inference")
    parser.add_argument("--no-live", action="store_true", help="Skip live flow detection")
    parser.add_argument("--output", "-o", help="Directory for analysis.json and interaction_report.md")
    return parser.parse_args()


def main():
    load_dotenv()
    args = parse_args()

    try:
        config_path = find_config_file(args.config)
        cfg = load_yaml(config_path)
    except FileNotFoundError as e:
        # A URL on the command line is enough to run with defaults
        if not (args.url or os.getenv("WEBPOM_TARGET_URL")):
            print(f"[ERROR] {e}", file=sys.stderr)
            sys.exit(1)
        cfg = {}

    asyncio.run(run_analysis(cfg, args))


if __name__ == "__main__":
    main()
