import json


class ConnectMessagePrompt:
    def __init__(self, profile):
        self.profile = profile

    def generate_prompt(self):
        messages = [
            {
                'role': 'system',
                'content': "You will be provided with a JSON containing slices and strings of posts, experience, education, about, name, and geography for a LinkedIn user. "
                           "Create a connect message of maximum two lines. Prioritize the content of the message by posts, experience, education, about, name, and geography. "
                           "If nothing is present, send a sample connect message."
            },
            {
                'role': 'user',
                'content': json.dumps(self.profile.model_dump(), ensure_ascii=False)
            }
        ]
        return messages
