"""Single-page studio UI served at the root path."""

STUDIO_UI_HTML = """<!doctype html>
<html lang="en">
  <head>
    <meta charset="utf-8" />
    <meta name="viewport" content="width=device-width, initial-scale=1" />
    <title>Cartoon Studio</title>
    <style>
      body { font-family: ui-sans-serif, system-ui, sans-serif; margin: 2rem;
             background: #111827; color: #f3f4f6; }
      h1 { color: #c084fc; margin-bottom: 0.5rem; }
      .row { margin-bottom: 1rem; }
      input { padding: 0.4rem 0.6rem; width: 320px; }
      button { padding: 0.4rem 0.8rem; margin-right: 0.5rem; }
      button:disabled { opacity: 0.5; }
      #result img { max-width: 768px; width: 100%; border-radius: 8px; }
      #gallery { display: grid; grid-template-columns: repeat(auto-fill, 200px);
                 gap: 1rem; }
      #gallery img { width: 200px; border-radius: 6px; cursor: pointer; }
      #toast { position: fixed; right: 1rem; bottom: 1rem; padding: 0.6rem 1rem;
               border-radius: 6px; display: none; }
      .error { background: #b91c1c; }
      .success { background: #15803d; }
      .hidden { display: none; }
    </style>
  </head>
  <body>
    <h1>Create Your Cartoon</h1>
    <p>Transform your ideas into unique cartoon artwork using AI</p>

    <div id="auth" class="row">
      <input id="email" type="email" placeholder="Email" />
      <input id="password" type="password" placeholder="Password" />
      <button onclick="authenticate('sign-in')">Sign In</button>
      <button onclick="authenticate('sign-up')">Create Account</button>
    </div>
    <div id="signed-in" class="row hidden">
      <span id="who"></span>
      <button onclick="signOut()">Sign Out</button>
    </div>

    <div class="row">
      <input id="prompt" type="text" placeholder="Describe your cartoon scene..."
             onkeydown="if (event.key === 'Enter') generate()" />
      <button id="generate" onclick="generate()" disabled>Generate</button>
    </div>
    <div id="result" class="row"></div>

    <h2>Your gallery</h2>
    <div id="gallery"></div>
    <div id="toast"></div>

    <script>
      let signedIn = false;
      let loading = false;

      function toast(message, kind) {
        const el = document.getElementById('toast');
        el.textContent = message;
        el.className = kind;
        el.style.display = 'block';
        setTimeout(() => { el.style.display = 'none'; }, 4000);
      }

      async function call(method, path, body) {
        const res = await fetch(path, {
          method,
          headers: { 'Content-Type': 'application/json' },
          body: body ? JSON.stringify(body) : undefined,
        });
        const data = await res.json().catch(() => ({}));
        if (!res.ok) {
          throw new Error(data.message || ('Error: ' + res.status));
        }
        return data;
      }

      function render(session) {
        signedIn = session.authenticated;
        document.getElementById('auth').classList.toggle('hidden', signedIn);
        document.getElementById('signed-in').classList.toggle('hidden', !signedIn);
        document.getElementById('who').textContent = session.email || '';
        updateButton();
        if (signedIn) { loadGallery(); }
        else { document.getElementById('gallery').innerHTML = ''; }
      }

      function updateButton() {
        const button = document.getElementById('generate');
        button.disabled = loading || !signedIn;
        button.textContent = loading ? 'Generating...' : 'Generate';
      }

      async function authenticate(action) {
        try {
          const session = await call('POST', '/api/auth/' + action, {
            email: document.getElementById('email').value,
            password: document.getElementById('password').value,
          });
          render(session);
          toast(action === 'sign-in' ? 'Successfully signed in!'
                                     : 'Account created successfully!', 'success');
        } catch (err) {
          toast(err.message, 'error');
        }
      }

      async function signOut() {
        try {
          render(await call('POST', '/api/auth/sign-out'));
          toast('Signed out successfully', 'success');
        } catch (err) {
          toast('Failed to sign out', 'error');
        }
      }

      async function generate() {
        if (loading || !signedIn) { return; }
        loading = true;
        updateButton();
        try {
          const data = await call('POST', '/api/generate', {
            prompt: document.getElementById('prompt').value,
          });
          const result = document.getElementById('result');
          result.innerHTML = '';
          const image = document.createElement('img');
          image.alt = 'Generated cartoon';
          image.src = data.image;
          result.appendChild(image);
          if (data.saved) {
            toast('Image saved to your gallery!', 'success');
            loadGallery();
          } else {
            toast(data.warning || 'Failed to save image', 'error');
          }
        } catch (err) {
          toast(err.message, 'error');
        } finally {
          loading = false;
          updateButton();
        }
      }

      async function loadGallery() {
        try {
          const data = await call('GET', '/api/images');
          const gallery = document.getElementById('gallery');
          gallery.innerHTML = '';
          for (const image of data.images) {
            const img = document.createElement('img');
            img.src = image.image_url;
            img.alt = image.prompt;
            img.title = image.prompt + ' (' +
              new Date(image.created_at).toLocaleDateString() + ')';
            img.onclick = () => window.open(image.image_url);
            gallery.appendChild(img);
          }
        } catch (err) {
          toast(err.message, 'error');
        }
      }

      call('GET', '/api/auth/session').then(render).catch(() => render({}));
    </script>
  </body>
</html>
"""
