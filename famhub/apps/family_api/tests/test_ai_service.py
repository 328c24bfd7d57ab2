# famhub/apps/family_api/tests/test_ai_service.py
import json
from datetime import timedelta
from unittest.mock import MagicMock, patch

from django.contrib.auth.models import User
from django.test import TestCase
from django.utils import timezone

from apps.family_api import ai_service
from apps.family_api.models import ChatMessage, Child, HealthLog


def completion(content):
    response = MagicMock()
    response.choices = [MagicMock()]
    response.choices[0].message.content = content
    return response


class CompleteTests(TestCase):
    def test_no_client_returns_none(self):
        with patch.object(ai_service, 'openai_client', None):
            self.assertIsNone(ai_service.complete("system", "user"))

    def test_json_mode_and_model(self):
        client = MagicMock()
        client.chat.completions.create.return_value = completion('  {"ok": true}  ')
        with patch.object(ai_service, 'openai_client', client):
            self.assertEqual(ai_service.complete("system", "user", json_mode=True), '{"ok": true}')
        kwargs = client.chat.completions.create.call_args[1]
        self.assertEqual(kwargs['response_format'], {"type": "json_object"})
        self.assertEqual(kwargs['messages'][1], {"role": "user", "content": "user"})

    def test_api_error_returns_none(self):
        client = MagicMock()
        client.chat.completions.create.side_effect = Exception("rate limited")
        with patch.object(ai_service, 'openai_client', client):
            self.assertIsNone(ai_service.complete("system", "user"))


class TextHelpersTests(TestCase):
    @patch('apps.family_api.ai_service.complete', return_value='Pick up Sam at 3.')
    def test_correct_text(self, mock_complete):
        self.assertEqual(ai_service.capitalize_and_correct_text('pick up sam at 3'), 'Pick up Sam at 3.')

    @patch('apps.family_api.ai_service.complete', return_value=None)
    def test_correct_text_falls_back_to_input(self, mock_complete):
        self.assertEqual(ai_service.capitalize_and_correct_text('pick up sam'), 'pick up sam')

    @patch('apps.family_api.ai_service.complete')
    def test_blank_text_not_sent(self, mock_complete):
        self.assertEqual(ai_service.capitalize_and_correct_text('   '), '   ')
        mock_complete.assert_not_called()

    @patch('apps.family_api.ai_service.complete')
    def test_validate_health_input(self, mock_complete):
        mock_complete.return_value = json.dumps({'is_valid': False, 'suggestion': 'Enter hours, e.g. 9'})
        result = ai_service.validate_health_input('sleep', 'a lot')
        self.assertEqual(result, {'is_valid': False, 'suggestion': 'Enter hours, e.g. 9'})

    @patch('apps.family_api.ai_service.complete', return_value='not json')
    def test_validate_health_input_bad_json(self, mock_complete):
        self.assertEqual(ai_service.validate_health_input('meal', 'rice'), {'is_valid': True, 'suggestion': ''})


class TrendAndChatTests(TestCase):
    def setUp(self):
        self.parent = User.objects.create_user(username='ai_parent', password='password')
        self.child = Child.objects.create(parent=self.parent, name='Noor')

    def test_trends_without_data(self):
        with patch('apps.family_api.ai_service.complete') as mock_complete:
            result = ai_service.generate_trend_analysis(self.child)
        self.assertIn('Not enough data yet', result)
        mock_complete.assert_not_called()

    def test_trends_prompt_includes_recent_logs_only(self):
        now = timezone.now()
        HealthLog.objects.create(owner=self.parent, child=self.child, log_type='sleep', value='10',
                                 timestamp=now - timedelta(days=2))
        HealthLog.objects.create(owner=self.parent, child=self.child, log_type='meal', value='ancient soup',
                                 timestamp=now - timedelta(days=30))
        with patch('apps.family_api.ai_service.complete', return_value='Sleep is steady.') as mock_complete:
            result = ai_service.generate_trend_analysis(self.child, now=now)
        self.assertEqual(result, 'Sleep is steady.')
        prompt = mock_complete.call_args[0][1]
        self.assertIn('sleep: 10', prompt)
        self.assertNotIn('ancient soup', prompt)

    @patch('apps.family_api.ai_service.complete', return_value=None)
    def test_trends_fallback(self, mock_complete):
        HealthLog.objects.create(owner=self.parent, child=self.child, log_type='mood', value='happy')
        self.assertEqual(ai_service.generate_trend_analysis(self.child), ai_service.TREND_FALLBACK)

    @patch('apps.family_api.ai_service.complete', return_value='Hello!')
    def test_chat_stores_both_turns(self, mock_complete):
        self.assertEqual(ai_service.chat_reply(self.parent, 'Hi'), 'Hello!')
        self.assertEqual(list(ChatMessage.objects.values_list('role', 'content')),
                         [('user', 'Hi'), ('assistant', 'Hello!')])

    @patch('apps.family_api.ai_service.complete', return_value=None)
    def test_chat_failure_stores_fallback_turn(self, mock_complete):
        self.assertEqual(ai_service.chat_reply(self.parent, 'Hi'), ai_service.CHAT_FALLBACK)
        self.assertEqual(list(ChatMessage.objects.values_list('role', 'content')),
                         [('user', 'Hi'), ('assistant', ai_service.CHAT_FALLBACK)])
