"""DSPy signatures for the sales conversation.

Uses Pydantic types for structured I/O and rich descriptions to guide the LLM.
"""

import dspy

from waypoint.du.models import CandidateNode, DemoRequest, InputAnalysis


class AnalyzeTurn(dspy.Signature):
    """You are a sales assistant. Analyze the user input and determine the next steps.

    RULES:
    1. Choose next_node_id from `candidate_nodes` unless the conversation clearly
       needs another node.
    2. Extract any user inputs you can identify (name, email, product_choice, ...)
       into user_inputs. Use snake_case keys.
    3. If the required fields of the chosen node are not met, ask a follow-up
       question for them in suggested_response.
    4. confidence is a number between 0 and 1.
    """

    user_message: str = dspy.InputField(desc="Current user input to analyze")
    user_details: dict = dspy.InputField(desc="Context collected so far (user details)")
    candidate_nodes: list[CandidateNode] = dspy.InputField(
        desc="Possible next nodes with their descriptions and required fields"
    )
    history: dspy.History = dspy.InputField(
        desc="Conversation history (list of {role, content} messages)"
    )

    result: InputAnalysis = dspy.OutputField(
        desc="next_node_id, user_inputs, confidence and suggested_response"
    )


class AnswerProductQuestion(dspy.Signature):
    """You are a product expert. Provide detailed information about products based on the context.

    Give a detailed but concise response about the product.
    """

    question: str = dspy.InputField(desc="The user's question")
    user_details: dict = dspy.InputField(desc="Context collected so far")
    history: dspy.History = dspy.InputField(desc="Conversation history")

    answer: str = dspy.OutputField(desc="Concise answer about the product")


class ScheduleDemo(dspy.Signature):
    """Schedule a demo with the customer for tomorrow using the context provided."""

    user_details: dict = dspy.InputField(desc="Customer context: name, email, product_choice")
    today: str = dspy.InputField(desc="Today's date, ISO format")

    request: DemoRequest = dspy.OutputField(
        desc="Demo request; date is one day after today formatted as YYYY-MM-DDTHH:MM:SS"
    )
