from abc import abstractmethod

from shared.clients.ClientInterface import ClientInterface
from shared.clients.errors import CollaboratorError
from shared.helper.HelperConfig import HelperConfig

SYSTEM_PROMPT = "Summarize the provided context based on the query."
EMPTY_REPLY = "No summary available"


class LLMClientInterface(ClientInterface):
    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)

        # chat / completion config
        self.chat_model = helper_config.get_string_val(f"{self.get_client_type().upper()}_CHAT_MODEL")

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_client_type(self) -> str:
        return "llm"

    ################ ENDPOINTS ##################
    @abstractmethod
    def _get_endpoint_chat(self) -> str:
        """Returns the endpoint path for chat/completion requests (e.g. "/api/chat")."""
        pass

    ################ PAYLOAD BUILDER ##################
    @abstractmethod
    def get_chat_payload(self, messages: list[dict]) -> dict:
        """Build the backend-specific request body for a chat/completion request.

        Args:
            messages (list[dict]): OpenAI-format messages
                (e.g. [{"role": "user", "content": "..."}]).

        Returns:
            dict: JSON-serialisable request body.
        """
        pass

    def get_generation_messages(self, query: str, context: str) -> list[dict]:
        """Build the chat messages asking the model to answer from the context only.

        Args:
            query (str): The user query.
            context (str): Ranked chunk contents joined by blank lines.

        Returns:
            list[dict]: System and user messages.
        """
        return [
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": f"Context: {context}\n\nQuery: {query}."},
        ]

    ##########################################
    ################# OTHER ##################
    ##########################################

    @abstractmethod
    def extract_chat_response(self, response_data: dict) -> str:
        """Extract the assistant reply text from a raw chat API response.

        Args:
            response_data (dict): The parsed JSON response body.

        Returns:
            str: The assistant reply text.

        Raises:
            ValueError: If the response does not contain a valid reply.
        """
        pass

    ##########################################
    ############### REQUESTS #################
    ##########################################

    async def do_chat(self, messages: list[dict]) -> str:
        """Send a chat/completion request and return the assistant reply text.

        Args:
            messages (list[dict]): OpenAI-format messages.

        Returns:
            str: The assistant reply text.

        Raises:
            CollaboratorError: If the request fails or the response carries no reply.
        """
        body = self.get_chat_payload(messages)
        response = await self.do_request(
            method="POST",
            endpoint=self._get_endpoint_chat(),
            json=body,
            raise_on_error=True,
        )
        try:
            return self.extract_chat_response(response.json())
        except ValueError as exc:
            raise CollaboratorError(str(exc)) from exc

    async def do_generate(self, query: str, context: str) -> str:
        """Answer a query grounded in the given context.

        Args:
            query (str): The user query.
            context (str): The assembled top-K context.

        Returns:
            str: The model answer, or a fixed notice if the model replied with nothing.
        """
        reply = await self.do_chat(self.get_generation_messages(query, context))
        return reply if reply.strip() else EMPTY_REPLY
