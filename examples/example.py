import asyncio
import json
import os
import sys
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
from dotenv import load_dotenv
load_dotenv()

from webpom_agent.executor import AnalysisRunner
from webpom_agent.flows import render_interaction_report

async def example():
    browser_config = {
        "viewport": {"width": 1280, "height": 720},
        "headless": False
    }
    analysis_config = {
        "request_timeout": 90,
        "analyze_patterns": True,
        "detect_flows": True,
    }

    runner = AnalysisRunner(browser_config=browser_config, analysis_config=analysis_config)
    url = os.getenv("WEBPOM_TARGET_URL", "https://example.com")

    analysis = await runner.analyze(url)
    print(json.dumps(analysis.metadata.to_dict(), indent=2))
    for element in analysis.interactive_elements[:10]:
        print(f"{element.unique_name:30} {element.element_type:10} {element.selector}")

    print(render_interaction_report(analysis.user_flows))

    # live detection only, without the element model
    flows = await runner.detect_interactions(url)
    print(f"Live flows: {[flow.name for flow in flows]}")

if __name__ == "__main__":
    asyncio.run(example())
