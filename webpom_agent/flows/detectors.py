"""Live interaction-archetype detectors.

Every detector has the same shape: it takes a :class:`DetectionContext`,
probes the rendered page with targeted selectors and returns a
:class:`UserFlow` or ``None`` when its archetype is not present. Detectors
are independent of each other and of the extracted element model.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from playwright.async_api import Locator, Page

from webpom_agent.crawler.selector import css_escape, data_testid_selector, quote_attribute_value
from webpom_agent.data.models import (
    APICall,
    Assertion,
    AssertionType,
    FlowStep,
    Interaction,
    InteractionType,
    UserFlow,
    VisualCheckpoint,
)
from webpom_agent.flows.values import EMAIL_VALUE

UNKNOWN_SELECTOR = "unknown"

LOGIN_SELECTORS = [
    'input[type="email"]',
    'input[type="password"]',
    'input[name*="email"]',
    'input[name*="username"]',
    'input[name*="password"]',
    'button[type="submit"]',
    'button:has-text("Login")',
    'button:has-text("Sign in")',
]
LOGIN_USER_SELECTOR = 'input[type="email"], input[name*="email"], input[name*="username"]'
LOGIN_PASSWORD_SELECTOR = 'input[type="password"]'
LOGIN_SUBMIT_SELECTOR = 'button[type="submit"], button:has-text("Login"), button:has-text("Sign in")'

SEARCH_SELECTORS = [
    'input[type="search"]',
    'input[placeholder*="Search" i]',
    'input[aria-label*="Search" i]',
    'input[name*="search" i]',
    '[role="search"] input',
]

FORM_FIELD_SELECTOR = "input, select, textarea"
FORM_SUBMIT_SELECTOR = 'button[type="submit"], input[type="submit"]'
NAV_LINK_SELECTOR = "nav a, header a"
MAIN_REGION_SELECTOR = 'main, [role="main"]'

ADD_TO_CART_SELECTORS = [
    'button:has-text("Add to Cart")',
    'button:has-text("Add to Bag")',
    'button[aria-label*="Add to cart" i]',
    ".add-to-cart",
]
CART_ICON_SELECTOR = '[aria-label*="cart" i], [data-testid*="cart"]'

FILTER_SELECTORS = ['input[type="checkbox"]', "select", '[role="checkbox"]', ".filter"]
MODAL_TRIGGER_SELECTOR = '[data-modal], [data-toggle="modal"], button:has-text("Open")'
DIALOG_SELECTOR = '[role="dialog"], .modal'
ACCORDION_SELECTOR = '[role="button"][aria-expanded]'
TAB_SELECTOR = '[role="tab"]'

MAX_NAV_STEPS = 3
MAX_FILTER_STEPS = 2
MAX_ACCORDION_STEPS = 2
MAX_TAB_STEPS = 3

LOGIN_USER_VALUE = "user@example.com"
LOGIN_PASSWORD_VALUE = "password123"
SEARCH_QUERY_VALUE = "test query"
TEXT_FIELD_VALUE = "Test Value"
TEXTAREA_VALUE = "Test message"
SELECT_OPTION_VALUE = "option1"

_INLINE_SELECTOR_JS = """(el) => {
    const tag = el.tagName.toLowerCase();
    const classes = Array.from(el.classList).slice(0, 2).join('.');
    return classes ? `${tag}.${classes}` : tag;
}"""


@dataclass
class DetectionContext:
    page: Page
    # live list of recorded calls, read when a flow is built
    api_calls: List[APICall] = field(default_factory=list)
    scroll_wait: int = 1000

    def calls_matching(self, *markers: str) -> List[APICall]:
        if not markers:
            return list(self.api_calls)
        return [call for call in self.api_calls if any(m in call.url for m in markers)]


async def resolve_selector(locator: Locator) -> str:
    """data-testid, then id, then aria-label, then ``tag.class1.class2``.

    Never raises: a vanished or unreadable element yields ``"unknown"``.
    """
    try:
        test_id = await locator.get_attribute("data-testid")
        if test_id:
            return data_testid_selector(test_id)

        element_id = await locator.get_attribute("id")
        if element_id:
            return f"#{css_escape(element_id)}"

        aria_label = await locator.get_attribute("aria-label")
        if aria_label:
            return f'[aria-label="{quote_attribute_value(aria_label)}"]'

        return await locator.evaluate(_INLINE_SELECTOR_JS)
    except Exception as e:
        logging.debug(f"Selector resolution failed: {e}")
        return UNKNOWN_SELECTOR


def _step_id(steps: List[FlowStep]) -> str:
    return f"step_{len(steps) + 1}"


async def _first(page_or_locator, selector: str) -> Optional[Locator]:
    locator = page_or_locator.locator(selector).first
    if await locator.count() == 0:
        return None
    return locator


async def detect_login_flow(ctx: DetectionContext) -> Optional[UserFlow]:
    page = ctx.page
    matches = await page.locator(", ".join(LOGIN_SELECTORS)).all()
    if len(matches) < 2:
        return None

    steps: List[FlowStep] = []

    user_input = await _first(page, LOGIN_USER_SELECTOR)
    if user_input:
        steps.append(
            FlowStep(
                id=_step_id(steps),
                action=Interaction(
                    type=InteractionType.FILL, element=await resolve_selector(user_input), value=LOGIN_USER_VALUE
                ),
                screenshot=False,
            )
        )

    password_input = await _first(page, LOGIN_PASSWORD_SELECTOR)
    if password_input:
        steps.append(
            FlowStep(
                id=_step_id(steps),
                action=Interaction(
                    type=InteractionType.FILL,
                    element=await resolve_selector(password_input),
                    value=LOGIN_PASSWORD_VALUE,
                ),
                screenshot=False,
            )
        )

    submit = await _first(page, LOGIN_SUBMIT_SELECTOR)
    if submit:
        steps.append(
            FlowStep(
                id=_step_id(steps),
                action=Interaction(
                    type=InteractionType.CLICK, element=await resolve_selector(submit), wait_for="networkidle"
                ),
                screenshot=True,
                visual_regression=True,
                assertion=Assertion(type=AssertionType.URL, expected="/dashboard"),
            )
        )

    if not steps:
        return None

    return UserFlow(
        name="Login Flow",
        description="User login with email and password",
        steps=steps,
        expected_api_calls=ctx.calls_matching("login", "auth"),
        visual_checkpoints=[
            VisualCheckpoint(name="login-page-initial", full_page=True),
            VisualCheckpoint(name="dashboard-after-login", full_page=True, mask=["header", "footer"]),
        ],
    )


async def detect_search_flow(ctx: DetectionContext) -> Optional[UserFlow]:
    search_input = await _first(ctx.page, ", ".join(SEARCH_SELECTORS))
    if not search_input:
        return None

    selector = await resolve_selector(search_input)
    steps = [
        FlowStep(
            id="step_1",
            action=Interaction(type=InteractionType.FILL, element=selector, value=SEARCH_QUERY_VALUE),
            screenshot=False,
        ),
        FlowStep(
            id="step_2",
            action=Interaction(type=InteractionType.PRESS, element=selector, value="Enter", wait_for="networkidle"),
            screenshot=True,
            visual_regression=True,
        ),
    ]
    return UserFlow(
        name="Search Flow",
        description="User performs a search query",
        steps=steps,
        expected_api_calls=ctx.calls_matching("search", "query"),
        visual_checkpoints=[VisualCheckpoint(name="search-results", full_page=True)],
    )


async def _form_field_step(field_locator: Locator, steps: List[FlowStep]) -> Optional[FlowStep]:
    tag = await field_locator.evaluate("(el) => el.tagName.toLowerCase()")
    input_type = ((await field_locator.get_attribute("type")) or "text").lower()

    if tag == "input":
        if input_type in ("text", "email", "tel"):
            value = EMAIL_VALUE if input_type == "email" else TEXT_FIELD_VALUE
            action = Interaction(type=InteractionType.FILL, element=await resolve_selector(field_locator), value=value)
        elif input_type in ("checkbox", "radio"):
            action = Interaction(type=InteractionType.CHECK, element=await resolve_selector(field_locator))
        else:
            return None
    elif tag == "select":
        action = Interaction(
            type=InteractionType.SELECT, element=await resolve_selector(field_locator), value=SELECT_OPTION_VALUE
        )
    elif tag == "textarea":
        action = Interaction(
            type=InteractionType.FILL, element=await resolve_selector(field_locator), value=TEXTAREA_VALUE
        )
    else:
        return None
    return FlowStep(id=_step_id(steps), action=action, screenshot=False)


async def detect_form_flow(ctx: DetectionContext) -> Optional[UserFlow]:
    forms = await ctx.page.locator("form").all()
    if not forms:
        return None

    # only the first form on the page
    form = forms[0]
    steps: List[FlowStep] = []
    for field_locator in await form.locator(FORM_FIELD_SELECTOR).all():
        step = await _form_field_step(field_locator, steps)
        if step:
            steps.append(step)

    submit = await _first(form, FORM_SUBMIT_SELECTOR)
    if submit:
        steps.append(
            FlowStep(
                id=_step_id(steps),
                action=Interaction(
                    type=InteractionType.CLICK, element=await resolve_selector(submit), wait_for="networkidle"
                ),
                screenshot=True,
                visual_regression=True,
            )
        )

    if not steps:
        return None

    return UserFlow(
        name="Form Submission Flow",
        description="User fills and submits a form",
        steps=steps,
        expected_api_calls=ctx.calls_matching(),
        visual_checkpoints=[VisualCheckpoint(name="form-filled", selector="form", full_page=False)],
    )


async def detect_navigation_flow(ctx: DetectionContext) -> Optional[UserFlow]:
    links = await ctx.page.locator(NAV_LINK_SELECTOR).all()
    if not links:
        return None

    steps = []
    for link in links[:MAX_NAV_STEPS]:
        steps.append(
            FlowStep(
                id=_step_id(steps),
                action=Interaction(type=InteractionType.CLICK, element=await resolve_selector(link), wait_for="networkidle"),
                screenshot=True,
                visual_regression=True,
                assertion=Assertion(type=AssertionType.VISIBLE, selector=MAIN_REGION_SELECTOR, expected=True),
            )
        )

    return UserFlow(
        name="Navigation Flow",
        description="User navigates through main menu items",
        steps=steps,
        visual_checkpoints=[
            VisualCheckpoint(name=f"nav-page-{idx + 1}", full_page=True, mask=["header", "footer"])
            for idx in range(len(steps))
        ],
    )


async def detect_cart_flow(ctx: DetectionContext) -> Optional[UserFlow]:
    add_button = await _first(ctx.page, ", ".join(ADD_TO_CART_SELECTORS))
    if not add_button:
        return None

    steps = [
        FlowStep(
            id="step_1",
            action=Interaction(
                type=InteractionType.CLICK, element=await resolve_selector(add_button), wait_for="networkidle"
            ),
            screenshot=True,
            visual_regression=True,
        )
    ]

    cart_icon = await _first(ctx.page, CART_ICON_SELECTOR)
    if cart_icon:
        steps.append(
            FlowStep(
                id="step_2",
                action=Interaction(type=InteractionType.CLICK, element=await resolve_selector(cart_icon)),
                screenshot=True,
                visual_regression=True,
            )
        )

    return UserFlow(
        name="Add to Cart Flow",
        description="User adds item to shopping cart",
        steps=steps,
        expected_api_calls=ctx.calls_matching("cart", "basket"),
        visual_checkpoints=[
            VisualCheckpoint(name="product-added", selector=".cart-notification, .toast", full_page=False),
            VisualCheckpoint(name="cart-page", full_page=True),
        ],
    )


async def detect_filter_flow(ctx: DetectionContext) -> Optional[UserFlow]:
    filters = await ctx.page.locator(", ".join(FILTER_SELECTORS)).all()
    if not filters:
        return None

    steps = []
    for idx, control in enumerate(filters[:MAX_FILTER_STEPS]):
        tag = await control.evaluate("(el) => el.tagName.toLowerCase()")
        selector = await resolve_selector(control)
        if tag == "input":
            action = Interaction(type=InteractionType.CHECK, element=selector, wait_for="networkidle")
        elif tag == "select":
            action = Interaction(
                type=InteractionType.SELECT, element=selector, value=SELECT_OPTION_VALUE, wait_for="networkidle"
            )
        else:
            continue
        steps.append(FlowStep(id=f"step_{idx + 1}", action=action, screenshot=True))

    if not steps:
        return None

    return UserFlow(
        name="Filter Flow",
        description="User applies filters to refine results",
        steps=steps,
        expected_api_calls=ctx.calls_matching(),
        visual_checkpoints=[VisualCheckpoint(name="filtered-results", full_page=True)],
    )


async def detect_modal_flow(ctx: DetectionContext) -> Optional[UserFlow]:
    triggers = await ctx.page.locator(MODAL_TRIGGER_SELECTOR).all()
    if not triggers:
        return None

    step = FlowStep(
        id="step_1",
        action=Interaction(type=InteractionType.CLICK, element=await resolve_selector(triggers[0])),
        screenshot=True,
        visual_regression=True,
        assertion=Assertion(type=AssertionType.VISIBLE, selector=DIALOG_SELECTOR, expected=True),
    )
    return UserFlow(
        name="Modal Interaction Flow",
        description="User opens and interacts with modal dialog",
        steps=[step],
        visual_checkpoints=[VisualCheckpoint(name="modal-open", selector=DIALOG_SELECTOR, full_page=False)],
    )


async def detect_accordion_flow(ctx: DetectionContext) -> Optional[UserFlow]:
    items = await ctx.page.locator(ACCORDION_SELECTOR).all()
    if not items:
        return None

    steps = []
    for item in items[:MAX_ACCORDION_STEPS]:
        steps.append(
            FlowStep(
                id=_step_id(steps),
                action=Interaction(type=InteractionType.CLICK, element=await resolve_selector(item)),
                screenshot=True,
            )
        )
    return UserFlow(
        name="Accordion Expansion Flow",
        description="User expands accordion sections",
        steps=steps,
        visual_checkpoints=[VisualCheckpoint(name="accordion-expanded", selector='[role="region"]', full_page=False)],
    )


async def detect_tab_flow(ctx: DetectionContext) -> Optional[UserFlow]:
    tabs = await ctx.page.locator(TAB_SELECTOR).all()
    if not tabs:
        return None

    steps = []
    for tab in tabs[:MAX_TAB_STEPS]:
        steps.append(
            FlowStep(
                id=_step_id(steps),
                action=Interaction(type=InteractionType.CLICK, element=await resolve_selector(tab)),
                screenshot=True,
                visual_regression=True,
            )
        )
    return UserFlow(
        name="Tab Navigation Flow",
        description="User switches between tabs",
        steps=steps,
        visual_checkpoints=[
            VisualCheckpoint(name=f"tab-{idx + 1}", selector='[role="tabpanel"]', full_page=False)
            for idx in range(len(steps))
        ],
    )


async def detect_infinite_scroll_flow(ctx: DetectionContext) -> Optional[UserFlow]:
    page = ctx.page
    initial_height = await page.evaluate("() => document.body.scrollHeight")
    await page.evaluate("() => window.scrollTo(0, document.body.scrollHeight)")
    await page.wait_for_timeout(ctx.scroll_wait)
    new_height = await page.evaluate("() => document.body.scrollHeight")

    if new_height <= initial_height:
        return None

    logging.debug(f"Scroll height grew from {initial_height} to {new_height}")
    return UserFlow(
        name="Infinite Scroll Flow",
        description="User scrolls to load more content",
        steps=[
            FlowStep(
                id="step_1",
                action=Interaction(type=InteractionType.SCROLL, element="body", value="bottom", wait_for="networkidle"),
                screenshot=True,
            )
        ],
        expected_api_calls=ctx.calls_matching(),
        visual_checkpoints=[VisualCheckpoint(name="scrolled-content", full_page=True)],
    )
