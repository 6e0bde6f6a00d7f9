"""Node set of the sales assistant."""

from waypoint.config.models import NodeConfig
from waypoint.core.constants import ReplyPolicy

PRODUCT_DETAILS_NODE = "question_and_answer_node_for_product_details"

DEFAULT_NODES: tuple[NodeConfig, ...] = (
    NodeConfig(
        id="welcome",
        description="Welcome message",
        prompt_template="Hello! I'm your sales assistant. May I know your name?",
        next_node_ids=["collect_name", "collect_email", "get_products", PRODUCT_DETAILS_NODE],
    ),
    NodeConfig(
        id="collect_name",
        description="Collect name from user",
        prompt_template="Nice to meet you, {name}! What's your email address?",
        next_node_ids=["collect_email", "get_products", PRODUCT_DETAILS_NODE],
    ),
    NodeConfig(
        id="collect_email",
        description="Collect email address from user",
        prompt_template="Thanks, {name}! Which of our products would you like to hear about?",
        required_fields=["name"],
        next_node_ids=["get_products", PRODUCT_DETAILS_NODE, "schedule_demo"],
    ),
    NodeConfig(
        id="get_products",
        description="Present the product catalogue and capture the user's product choice",
        prompt_template=(
            "We offer Product A, Product B and Product C. Which one are you interested in?"
        ),
        required_fields=["email"],
        next_node_ids=[PRODUCT_DETAILS_NODE, "schedule_demo", "goodbye"],
    ),
    NodeConfig(
        id=PRODUCT_DETAILS_NODE,
        description="Answer questions about product details",
        prompt_template="What would you like to know about {product_choice}?",
        next_node_ids=["get_products", "schedule_demo", "goodbye"],
        handler="product_details",
        reply_policy=ReplyPolicy.SUPPLEMENT,
    ),
    NodeConfig(
        id="schedule_demo",
        description="Schedule a product demo for the user",
        prompt_template="Let's book a demo of {product_choice} for you, {name}.",
        required_fields=["name", "email"],
        next_node_ids=["goodbye", PRODUCT_DETAILS_NODE],
        handler="schedule_demo",
        reply_policy=ReplyPolicy.REPLACE,
    ),
    NodeConfig(
        id="goodbye",
        description="Close the conversation",
        prompt_template="Thanks for your time, {name}! Have a great day.",
    ),
)
